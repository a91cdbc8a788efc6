"""Reference data models: questions, their options and display categories.

Wire payloads use camelCase keys (``isRequired``, ``subLabel``); Python code
reads the snake_case attribute names. All models are frozen because reference
data is immutable for the lifetime of a session.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class QuestionType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SINGLE = "single"
    MULTIPLE = "multiple"
    GENDER = "gender"
    IMAGE = "image"
    UPLOAD = "upload"
    BOOLEAN = "boolean"


class Option(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    value: str
    label: str
    sub_label: Optional[str] = Field(default=None, alias="subLabel")
    images: List[str] = Field(default_factory=list)
    order: int = 0

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, data):
        # Options without their own id are addressed by value
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("id"):
                data["id"] = data.get("value")
            if data.get("images") is None:
                data["images"] = []
        return data


class Question(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    question: str
    type: QuestionType
    section: int
    order: int = 0
    placeholder: Optional[str] = None
    disclaimer: Optional[str] = None
    is_required: bool = Field(default=True, alias="isRequired")
    options: List[Option] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _type_lowercase(cls, v):
        # Stored enum names are upper-case (TEXT, NUMBER, ...)
        return v.lower() if isinstance(v, str) else v

    @field_validator("options", mode="before")
    @classmethod
    def _options_default(cls, v):
        return [] if v is None else v

    def option_values(self) -> list[str]:
        return [o.value for o in self.options]


class Category(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    subtitle: str = ""
    order: int = 0


__all__ = ["QuestionType", "Option", "Question", "Category"]
