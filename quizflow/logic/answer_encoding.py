"""Encoding of answer values into their stored shape.

A single mapping from question type to stored answer type drives both the
quiz client (normalizing what goes into the AnswerStore) and the backend
(choosing the column an answer is written to). Every question type has an
entry; values that cannot be represented raise ValidationFailure and are
never stored.

Table:
- text                   -> STRING    trimmed string
- number                 -> NUMBER    parsed int/float
- single, gender, image  -> SINGLE    selected option value
- multiple               -> MULTIPLE  JSON array of option values
- upload                 -> IMAGE_URL URL from the upload endpoint
- boolean                -> BOOLEAN   explicit true/false
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Iterable, Optional, Union

from quizflow.errors import ValidationFailure
from quizflow.models.answer import (
    AnswerType,
    BooleanAnswer,
    EncodedAnswer,
    ImageUrlAnswer,
    MultipleAnswer,
    NumberAnswer,
    SingleAnswer,
    StringAnswer,
)
from quizflow.models.question import QuestionType

_VARIANTS = {
    AnswerType.STRING: StringAnswer,
    AnswerType.SINGLE: SingleAnswer,
    AnswerType.MULTIPLE: MultipleAnswer,
    AnswerType.NUMBER: NumberAnswer,
    AnswerType.BOOLEAN: BooleanAnswer,
    AnswerType.IMAGE_URL: ImageUrlAnswer,
}
_NON_DIGITS = re.compile(r"\D+")

ANSWER_TYPE_BY_QUESTION_TYPE: dict[QuestionType, AnswerType] = {
    QuestionType.TEXT: AnswerType.STRING,
    QuestionType.NUMBER: AnswerType.NUMBER,
    QuestionType.SINGLE: AnswerType.SINGLE,
    QuestionType.GENDER: AnswerType.SINGLE,
    QuestionType.IMAGE: AnswerType.SINGLE,
    QuestionType.MULTIPLE: AnswerType.MULTIPLE,
    QuestionType.UPLOAD: AnswerType.IMAGE_URL,
    QuestionType.BOOLEAN: AnswerType.BOOLEAN,
}


def normalize_phone(value: Any) -> str:
    """Return only the digits of a phone answer ('' for None)."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def parse_question_type(question_type: Union[QuestionType, str]) -> QuestionType:
    try:
        return QuestionType(str(getattr(question_type, "value", question_type)).lower())
    except ValueError:
        raise ValidationFailure(f"unknown question type {question_type!r}") from None


def parse_answer_type(answer_type: Union[AnswerType, str]) -> AnswerType:
    try:
        return AnswerType(str(getattr(answer_type, "value", answer_type)))
    except ValueError:
        raise ValidationFailure(f"invalid answerType {answer_type!r}") from None


def expected_answer_type(question_type: Union[QuestionType, str]) -> AnswerType:
    """Stored answer type for a question type (stored names are upper-case)."""
    return ANSWER_TYPE_BY_QUESTION_TYPE[parse_question_type(question_type)]


def _as_text(value: Any, what: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationFailure(f"{what} must be a string")
    text = str(value).strip()
    if not text:
        raise ValidationFailure(f"{what} must not be empty")
    return text


def _as_number(value: Any) -> Union[int, float]:
    if isinstance(value, bool):
        raise ValidationFailure("number answer must be numeric, got boolean")
    if isinstance(value, (int, float)):
        number: Union[int, float] = value
    elif isinstance(value, str):
        raw = value.strip()
        try:
            number = int(raw)
        except ValueError:
            try:
                number = float(raw)
            except ValueError:
                raise ValidationFailure(f"number answer is not numeric: {value!r}") from None
    else:
        raise ValidationFailure(f"number answer is not numeric: {value!r}")
    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationFailure(f"number answer must be finite: {value!r}")
    return number


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationFailure(f"boolean answer must be true or false: {value!r}")


def _as_choice(value: Any, options: Optional[Iterable[str]]) -> str:
    choice = _as_text(value, "choice answer")
    allowed = list(options or [])
    if allowed and choice not in allowed:
        raise ValidationFailure(f"unknown option {choice!r}")
    return choice


def _as_choices(value: Any, options: Optional[Iterable[str]]) -> list[str]:
    items = value if isinstance(value, (list, tuple)) else [value]
    if not items:
        raise ValidationFailure("multiple-choice answer needs at least one selection")
    return [_as_choice(item, options) for item in items]


def encode_answer(
    question_type: Union[QuestionType, str],
    value: Any,
    *,
    options: Optional[Iterable[str]] = None,
) -> EncodedAnswer:
    """Encode ``value`` for a question of ``question_type``.

    When ``options`` is given, choice answers must be one of those values.
    """
    answer_type = expected_answer_type(question_type)
    if answer_type is AnswerType.STRING:
        return StringAnswer(string_value=_as_text(value, "text answer"))
    if answer_type is AnswerType.NUMBER:
        return NumberAnswer(number_value=_as_number(value))
    if answer_type is AnswerType.SINGLE:
        return SingleAnswer(string_value=_as_choice(value, options))
    if answer_type is AnswerType.MULTIPLE:
        return MultipleAnswer(string_value=json.dumps(_as_choices(value, options)))
    if answer_type is AnswerType.IMAGE_URL:
        return ImageUrlAnswer(image_url=_as_text(value, "upload answer"))
    if answer_type is AnswerType.BOOLEAN:
        return BooleanAnswer(boolean_value=_as_bool(value))
    raise ValidationFailure(f"no encoding for answer type {answer_type!r}")  # pragma: no cover


def encode_by_answer_type(answer_type: Union[AnswerType, str], value: Any) -> EncodedAnswer:
    """Encode a raw ``value`` tagged with an explicit ``answer_type``.

    Used by the single-answer write endpoint where the client names the
    stored type directly. Unknown answer types are rejected.
    """
    atype = parse_answer_type(answer_type)
    if atype is AnswerType.STRING:
        return StringAnswer(string_value=_as_text(value, "text answer"))
    if atype is AnswerType.SINGLE:
        return SingleAnswer(string_value=_as_text(value, "choice answer"))
    if atype is AnswerType.MULTIPLE:
        return MultipleAnswer(string_value=json.dumps(_as_choices(value, None)))
    if atype is AnswerType.NUMBER:
        return NumberAnswer(number_value=_as_number(value))
    if atype is AnswerType.BOOLEAN:
        return BooleanAnswer(boolean_value=_as_bool(value))
    return ImageUrlAnswer(image_url=_as_text(value, "upload answer"))


def encode_for_question(
    question_type: Union[QuestionType, str],
    answer_type: Union[AnswerType, str],
    value: Any,
) -> EncodedAnswer:
    """Encode a tagged value whose tag must match the question type's mapping."""
    atype = parse_answer_type(answer_type)
    expected = expected_answer_type(question_type)
    if atype is not expected:
        raise ValidationFailure(
            f"answerType {atype.value} does not match question type "
            f"{parse_question_type(question_type).value} (expected {expected.value})"
        )
    return encode_by_answer_type(atype, value)


def decode_answer(encoded: Union[EncodedAnswer, dict]) -> Any:
    """Return the Python value of an encoded answer or a stored column row."""
    if isinstance(encoded, dict):
        try:
            variant = _VARIANTS[AnswerType(encoded.get("answer_type"))]
        except ValueError:
            raise ValidationFailure(f"invalid answerType {encoded.get('answer_type')!r}") from None
        fields = {k: encoded.get(k) for k in variant.model_fields if k != "answer_type"}
        if "boolean_value" in fields and fields["boolean_value"] is not None:
            # SQLite returns 0/1
            fields["boolean_value"] = bool(fields["boolean_value"])
        encoded = variant(**fields)
    return encoded.value


def normalize_answer(
    question_type: Union[QuestionType, str],
    value: Any,
    *,
    options: Optional[Iterable[str]] = None,
) -> Any:
    """Validate ``value`` and return it in the shape the AnswerStore keeps."""
    return decode_answer(encode_answer(question_type, value, options=options))


__all__ = [
    "ANSWER_TYPE_BY_QUESTION_TYPE",
    "normalize_phone",
    "parse_question_type",
    "parse_answer_type",
    "expected_answer_type",
    "encode_answer",
    "encode_by_answer_type",
    "encode_for_question",
    "decode_answer",
    "normalize_answer",
]
