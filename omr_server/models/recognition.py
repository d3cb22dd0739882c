from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from typing import Any, Dict

from omr_server.core.errors import MalformedAnswerSet
from omr_server.core.segmentation import SELECTIONS, check_question_number


class RawAnswerSet(BaseModel):
    """Per-question selections recognized on one sheet, plus recognition confidence."""

    model_config = ConfigDict(frozen=True)

    answers: Dict[int, str] = Field(default_factory=dict)
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    @field_validator("answers", mode="before")
    @classmethod
    def normalize_question_numbers(cls, value):
        if not isinstance(value, dict):
            return value
        answers = {}
        for key, selection in value.items():
            if isinstance(key, str) and key.strip().isdecimal():
                question = int(key)
            elif isinstance(key, int) and not isinstance(key, bool):
                question = key
            else:
                raise ValueError(f"Question number must be an integer, got {key!r}")
            check_question_number(question)
            # "1", "01" and " 1" all name question 1
            if question in answers:
                raise ValueError(f"Question {question} is answered more than once")
            answers[question] = selection
        return answers

    @field_validator("answers")
    @classmethod
    def validate_answers(cls, value):
        for question, selection in value.items():
            check_question_number(question)
            if selection not in SELECTIONS:
                raise ValueError(
                    f"Selection for question {question} must be one of {list(SELECTIONS)}, got {selection!r}"
                )
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def validate_confidence(cls, value):
        # A missing confidence means the recognizer gave no certainty estimate
        if value is None:
            return 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"confidence must be a number, got {value!r}")
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "RawAnswerSet":
        """Validate a decoded ``{"answers": {...}, "confidence": x}`` object."""
        if not isinstance(payload, dict):
            raise MalformedAnswerSet(f"Expected a JSON object, got {type(payload).__name__}")
        if not isinstance(payload.get("answers"), dict):
            raise MalformedAnswerSet("Answer set has no 'answers' object")
        try:
            return cls.model_validate(
                {"answers": payload["answers"], "confidence": payload.get("confidence")}
            )
        except ValidationError as e:
            raise MalformedAnswerSet(f"Malformed answer set: {e}") from e
