from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from enum import Enum


class EvaluationStatus(str, Enum):
    COMPLETED = "Completed"
    NEEDS_REVIEW = "NeedsReview"


class QuestionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    questionNumber: int
    studentAnswer: str
    correctAnswer: Optional[str] = None  # None when the key has no entry
    isCorrect: bool


class EvaluationResult(BaseModel):
    """Outcome of scoring one sheet against one answer key."""

    model_config = ConfigDict(frozen=True)

    perQuestion: Tuple[QuestionResult, ...]
    subjectScores: Tuple[int, ...]
    totalScore: int
    percentage: float
    confidenceScore: float
    status: EvaluationStatus

    def detailed_results(self) -> Dict[str, dict]:
        return {
            str(item.questionNumber): {
                "studentAnswer": item.studentAnswer,
                "correctAnswer": item.correctAnswer,
                "isCorrect": item.isCorrect,
            }
            for item in self.perQuestion
        }


class StudentIdentity(BaseModel):
    name: str
    rollNumber: str


class _SheetRequest(BaseModel):
    studentName: str
    rollNumber: str
    examVersion: str

    @field_validator("studentName", "rollNumber", "examVersion")
    @classmethod
    def validate_not_blank(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def student(self) -> StudentIdentity:
        return StudentIdentity(name=self.studentName, rollNumber=self.rollNumber)


class ProcessSheetRequest(_SheetRequest):
    imageBase64: str = Field(min_length=1)


class ScoreSheetRequest(_SheetRequest):
    # Validated into a RawAnswerSet by the pipeline so bad values surface as MalformedAnswerSet
    answers: Dict[str, Any]
    confidence: Any = None


class BatchProcessRequest(BaseModel):
    sheets: List[ProcessSheetRequest] = Field(min_length=1)


class EvaluationSummary(BaseModel):
    id: str
    studentName: str
    rollNumber: str
    examVersion: str
    subjectScores: List[int]
    totalScore: int
    percentage: float
    confidence: float
    status: EvaluationStatus


class EvaluationRecord(BaseModel):
    id: str
    studentIdentity: StudentIdentity
    examVersion: str
    answerKeyId: Optional[str] = None
    subjectScores: List[int]
    totalScore: int
    percentage: float
    detailedResults: Dict[str, dict]
    confidenceScore: float
    status: EvaluationStatus
    processedAt: datetime
