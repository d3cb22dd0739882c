import logging
from typing import Awaitable, Callable

from omr_server.core.resolver import AnswerKeyResolver
from omr_server.core.scoring import ScoringEngine
from omr_server.models.evaluation import EvaluationStatus, EvaluationSummary, StudentIdentity
from omr_server.models.recognition import RawAnswerSet
from omr_server.services.recorder import EvaluationRecorder

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = ScoringEngine()


async def evaluate_sheet(
    student: StudentIdentity,
    exam_version: str,
    resolver: AnswerKeyResolver,
    recorder: EvaluationRecorder,
    load_answers: Callable[[], Awaitable[RawAnswerSet]],
    engine: ScoringEngine = DEFAULT_ENGINE,
) -> dict:
    """Resolve the key, obtain the answers, score, then record.

    The key is resolved before ``load_answers`` runs, so a missing key never
    costs a recognition call. Any error aborts the evaluation before anything
    is recorded.
    """
    answer_key = await resolver.resolve(exam_version)
    raw_answers = await load_answers()

    result = engine.score(answer_key, raw_answers)
    if result.status == EvaluationStatus.NEEDS_REVIEW:
        logger.warning(
            f"Sheet for roll number {student.rollNumber} needs review: confidence "
            f"{result.confidenceScore} below {engine.gate.threshold}"
        )

    record = await recorder.record(result, student, answer_key)
    logger.info(
        f"Evaluated roll number {student.rollNumber} on version {exam_version}: "
        f"{result.totalScore}/{engine.segmentation.total_questions} ({result.percentage:.1f}%)"
    )
    return record


def summarize(record: dict) -> dict:
    return EvaluationSummary(
        id=record["id"],
        studentName=record["studentIdentity"]["name"],
        rollNumber=record["studentIdentity"]["rollNumber"],
        examVersion=record["examVersion"],
        subjectScores=record["subjectScores"],
        totalScore=record["totalScore"],
        percentage=record["percentage"],
        confidence=record["confidenceScore"],
        status=record["status"],
    ).model_dump(mode="json")
