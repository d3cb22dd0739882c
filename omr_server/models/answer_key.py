from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing import Dict, Optional
from datetime import datetime

from omr_server.core.errors import MalformedAnswerKey
from omr_server.core.segmentation import OPTIONS, TOTAL_QUESTIONS, check_question_number


def _check_options(answers: Dict[int, str]) -> Dict[int, str]:
    for question, answer in answers.items():
        if answer not in OPTIONS:
            raise ValueError(f"Answer for question {question} must be one of {list(OPTIONS)}, got {answer!r}")
    return answers


class AnswerKey(BaseModel):
    """Read-only snapshot of a stored answer key."""

    model_config = ConfigDict(frozen=True)

    keyId: Optional[str] = None
    examVersion: str = Field(min_length=1)
    examName: Optional[str] = None
    totalQuestions: int = Field(TOTAL_QUESTIONS, ge=0)
    answers: Dict[int, str] = Field(default_factory=dict)
    isActive: bool = True

    @field_validator("answers")
    @classmethod
    def validate_answers(cls, value):
        return _check_options(value)

    @model_validator(mode="after")
    def validate_question_numbers(self):
        for question in self.answers:
            check_question_number(question, self.totalQuestions)
        return self

    @property
    def missing_questions(self):
        return [q for q in range(1, self.totalQuestions + 1) if q not in self.answers]

    @classmethod
    def from_document(cls, doc: dict) -> "AnswerKey":
        """Build a snapshot from a stored ``answer_keys`` document."""
        data = {k: v for k, v in doc.items() if k != "_id"}
        if "_id" in doc:
            data["keyId"] = str(doc["_id"])
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedAnswerKey(
                f"Answer key for version '{doc.get('examVersion')}' is malformed: {e}"
            ) from e


class AnswerKeyCreate(BaseModel):
    examVersion: str
    examName: Optional[str] = None
    answers: Dict[int, str]

    @field_validator("examVersion")
    @classmethod
    def validate_exam_version(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("examVersion must not be empty")
        return value

    @field_validator("answers")
    @classmethod
    def validate_answers(cls, value):
        """Require every question 1..100 with an option in A-D."""
        for question in value:
            check_question_number(question)
        missing = [q for q in range(1, TOTAL_QUESTIONS + 1) if q not in value]
        if missing:
            raise ValueError(f"Answers missing for questions {missing}")
        return _check_options(value)

    def to_document(self) -> dict:
        return {
            "examVersion": self.examVersion,
            "examName": self.examName,
            "totalQuestions": TOTAL_QUESTIONS,
            # BSON documents need string keys
            "answers": {str(q): self.answers[q] for q in sorted(self.answers)},
            "isActive": True,
        }


class AnswerKeyResponse(BaseModel):
    keyId: str
    examVersion: str
    examName: Optional[str] = None
    totalQuestions: int
    answers: Dict[str, str]
    isActive: bool
    createdAt: Optional[datetime] = None
