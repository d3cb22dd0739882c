from datetime import datetime, timezone
import logging
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from omr_server.models.answer_key import AnswerKey
from omr_server.models.evaluation import EvaluationResult, StudentIdentity

logger = logging.getLogger(__name__)


def build_evaluation_document(result: EvaluationResult, student: StudentIdentity,
                              answer_key: AnswerKey, processed_at: datetime) -> dict:
    return {
        "studentIdentity": student.model_dump(),
        "examVersion": answer_key.examVersion,
        "answerKeyId": answer_key.keyId,
        "subjectScores": list(result.subjectScores),
        "totalScore": result.totalScore,
        "percentage": result.percentage,
        "detailedResults": result.detailed_results(),
        "confidenceScore": result.confidenceScore,
        "status": result.status.value,
        "processedAt": processed_at,
    }


def serialize_evaluation(doc: dict) -> dict:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


class EvaluationRecorder:
    """Persists evaluation results in the ``evaluations`` collection."""

    def __init__(self, db):
        self.db = db

    async def record(self, result: EvaluationResult, student: StudentIdentity, answer_key: AnswerKey) -> dict:
        evaluation_data = build_evaluation_document(result, student, answer_key, datetime.now(timezone.utc))
        inserted = await self.db.evaluations.insert_one(evaluation_data)
        evaluation_data["_id"] = inserted.inserted_id
        logger.info(
            f"Recorded evaluation {inserted.inserted_id} for roll number {student.rollNumber}: "
            f"{result.totalScore} ({result.status.value})"
        )
        return serialize_evaluation(evaluation_data)

    async def list_evaluations(self, exam_version: Optional[str] = None, status: Optional[str] = None) -> list:
        query = {}
        if exam_version:
            query["examVersion"] = exam_version
        if status:
            query["status"] = status
        cursor = self.db.evaluations.find(query).sort("processedAt", -1)
        evaluations = await cursor.to_list(length=None)
        return [serialize_evaluation(e) for e in evaluations]

    async def get(self, evaluation_id: str):
        try:
            object_id = ObjectId(evaluation_id)
        except (InvalidId, TypeError):
            return None
        evaluation = await self.db.evaluations.find_one({"_id": object_id})
        return serialize_evaluation(evaluation) if evaluation else None
