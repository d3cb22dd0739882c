import logging
from typing import Optional

from omr_server.core.errors import MalformedAnswerKey, MalformedAnswerSet
from omr_server.core.segmentation import INVALID, OPTIONS, SEGMENTATION, SELECTIONS, SubjectSegmentation
from omr_server.models.answer_key import AnswerKey
from omr_server.models.evaluation import EvaluationResult, EvaluationStatus, QuestionResult
from omr_server.models.recognition import RawAnswerSet

logger = logging.getLogger(__name__)

# Minimum recognition confidence for a result to skip human review
CONFIDENCE_THRESHOLD = 0.85


class ConfidenceGate:
    """Turns recognition confidence into a review status."""

    def __init__(self, threshold: float = CONFIDENCE_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Confidence threshold must be within [0, 1], got {threshold}")
        self.threshold = threshold

    def status(self, confidence: float) -> EvaluationStatus:
        if confidence >= self.threshold:
            return EvaluationStatus.COMPLETED
        return EvaluationStatus.NEEDS_REVIEW


def gate_status(confidence: float, threshold: float = CONFIDENCE_THRESHOLD) -> EvaluationStatus:
    return ConfidenceGate(threshold).status(confidence)


def percentage_of(total_score: int, total_questions: int) -> float:
    if total_questions <= 0:
        return 0.0
    return 100.0 * total_score / total_questions


class ScoringEngine:
    """Scores a recognized answer set against an answer key.

    Scoring is a pure function of its inputs: the same key and answer set
    always produce an equal ``EvaluationResult``. Neither input is mutated.
    """

    def __init__(self, segmentation: SubjectSegmentation = SEGMENTATION, gate: Optional[ConfidenceGate] = None):
        self.segmentation = segmentation
        self.gate = gate or ConfidenceGate()

    def score(self, answer_key: AnswerKey, raw_answers: RawAnswerSet) -> EvaluationResult:
        total_questions = self.segmentation.total_questions
        self._check_answer_key(answer_key, total_questions)
        self._check_answer_set(raw_answers, total_questions)

        subject_scores = [0] * self.segmentation.subject_count
        per_question = []

        for q in range(1, total_questions + 1):
            student_answer = raw_answers.answers.get(q, INVALID)
            correct_answer = answer_key.answers.get(q)

            # An unkeyed question is never correct, and INVALID never matches
            is_correct = (
                correct_answer is not None
                and student_answer != INVALID
                and student_answer == correct_answer
            )
            per_question.append(QuestionResult(
                questionNumber=q,
                studentAnswer=student_answer,
                correctAnswer=correct_answer,
                isCorrect=is_correct,
            ))
            if is_correct:
                subject_scores[self.segmentation.subject_of(q) - 1] += 1

        total_score = sum(subject_scores)
        status = self.gate.status(raw_answers.confidence)

        logger.debug(f"Scored version {answer_key.examVersion}: {total_score}/{total_questions} ({status.value})")
        return EvaluationResult(
            perQuestion=tuple(per_question),
            subjectScores=tuple(subject_scores),
            totalScore=total_score,
            percentage=percentage_of(total_score, total_questions),
            confidenceScore=raw_answers.confidence,
            status=status,
        )

    @staticmethod
    def _check_answer_key(answer_key: AnswerKey, total_questions: int) -> None:
        if answer_key.totalQuestions != total_questions:
            raise MalformedAnswerKey(
                f"Answer key for version '{answer_key.examVersion}' has {answer_key.totalQuestions} "
                f"questions, expected {total_questions}"
            )
        for question, answer in answer_key.answers.items():
            if isinstance(question, bool) or not isinstance(question, int) or not 1 <= question <= total_questions:
                raise MalformedAnswerKey(f"Answer key has question number {question!r} outside 1..{total_questions}")
            if answer not in OPTIONS:
                raise MalformedAnswerKey(f"Answer key has invalid option {answer!r} for question {question}")

    @staticmethod
    def _check_answer_set(raw_answers: RawAnswerSet, total_questions: int) -> None:
        for question, selection in raw_answers.answers.items():
            if isinstance(question, bool) or not isinstance(question, int) or not 1 <= question <= total_questions:
                raise MalformedAnswerSet(f"Answer set has question number {question!r} outside 1..{total_questions}")
            if selection not in SELECTIONS:
                raise MalformedAnswerSet(f"Answer set has invalid selection {selection!r} for question {question}")
        if not 0.0 <= raw_answers.confidence <= 1.0:
            raise MalformedAnswerSet(f"Confidence {raw_answers.confidence} outside [0, 1]")


def score(answer_key: AnswerKey, raw_answers: RawAnswerSet) -> EvaluationResult:
    return ScoringEngine().score(answer_key, raw_answers)
