"""Stored answer shapes as a tagged union keyed by ``answer_type``.

Each variant populates exactly one storage column. ``columns()`` returns the
full column mapping (unused columns as None) for repository writes, and
``value`` returns the decoded Python value.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AnswerType(str, Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    SINGLE = "SINGLE"
    MULTIPLE = "MULTIPLE"
    IMAGE_URL = "IMAGE_URL"


class _Encoded(BaseModel):
    model_config = ConfigDict(frozen=True)

    def columns(self) -> dict:
        return {
            "answer_type": self.answer_type.value,  # type: ignore[attr-defined]
            "string_value": getattr(self, "string_value", None),
            "number_value": getattr(self, "number_value", None),
            "boolean_value": getattr(self, "boolean_value", None),
            "image_url": getattr(self, "image_url", None),
        }


class StringAnswer(_Encoded):
    answer_type: Literal[AnswerType.STRING] = AnswerType.STRING
    string_value: str

    @property
    def value(self) -> str:
        return self.string_value


class SingleAnswer(_Encoded):
    answer_type: Literal[AnswerType.SINGLE] = AnswerType.SINGLE
    string_value: str

    @property
    def value(self) -> str:
        return self.string_value


class MultipleAnswer(_Encoded):
    answer_type: Literal[AnswerType.MULTIPLE] = AnswerType.MULTIPLE
    # JSON-encoded array of option values
    string_value: str

    @property
    def value(self) -> list[str]:
        return list(json.loads(self.string_value))


class NumberAnswer(_Encoded):
    answer_type: Literal[AnswerType.NUMBER] = AnswerType.NUMBER
    number_value: Union[int, float]

    @property
    def value(self) -> Union[int, float]:
        return self.number_value


class BooleanAnswer(_Encoded):
    answer_type: Literal[AnswerType.BOOLEAN] = AnswerType.BOOLEAN
    boolean_value: bool

    @property
    def value(self) -> bool:
        return self.boolean_value


class ImageUrlAnswer(_Encoded):
    answer_type: Literal[AnswerType.IMAGE_URL] = AnswerType.IMAGE_URL
    image_url: str

    @property
    def value(self) -> str:
        return self.image_url


EncodedAnswer = Annotated[
    Union[StringAnswer, SingleAnswer, MultipleAnswer, NumberAnswer, BooleanAnswer, ImageUrlAnswer],
    Field(discriminator="answer_type"),
]


class AnswerRecord(BaseModel):
    """A persisted answer row as returned by the answers endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    question_id: str = Field(alias="questionId")
    answer_type: AnswerType = Field(alias="answerType")
    string_value: Optional[str] = Field(default=None, alias="stringValue")
    number_value: Optional[float] = Field(default=None, alias="numberValue")
    boolean_value: Optional[bool] = Field(default=None, alias="booleanValue")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


__all__ = [
    "AnswerType",
    "StringAnswer",
    "SingleAnswer",
    "MultipleAnswer",
    "NumberAnswer",
    "BooleanAnswer",
    "ImageUrlAnswer",
    "EncodedAnswer",
    "AnswerRecord",
]
