from datetime import datetime, timezone
import logging
from typing import Optional

from omr_server.core.errors import AnswerKeyNotFound
from omr_server.core.resolver import AnswerKeyResolver, is_blank, pick_active
from omr_server.models.answer_key import AnswerKey, AnswerKeyCreate

logger = logging.getLogger(__name__)


class MongoAnswerKeyResolver(AnswerKeyResolver):
    """Resolves active keys from the ``answer_keys`` collection.

    Each call is a snapshot read; a key activated or deactivated afterwards
    does not affect an evaluation already holding the snapshot.
    """

    def __init__(self, db):
        self.db = db

    async def resolve(self, exam_version: str) -> AnswerKey:
        if is_blank(exam_version):
            raise AnswerKeyNotFound(exam_version or "")

        # Two is enough to tell "exactly one" from "several"
        cursor = self.db.answer_keys.find({"examVersion": exam_version, "isActive": True}).limit(2)
        docs = await cursor.to_list(length=2)
        if len(docs) > 1:
            logger.error(f"Found {len(docs)} or more active answer keys for version {exam_version}")
        answer_key = AnswerKey.from_document(pick_active(exam_version, docs))
        if answer_key.missing_questions:
            logger.warning(
                f"Answer key {answer_key.keyId} for version {exam_version} has no entry for questions "
                f"{answer_key.missing_questions}; they cannot be scored as correct"
            )
        return answer_key


async def save_answer_key(db, answer_key: AnswerKeyCreate) -> str:
    """Store a new active key, deactivating any key already active for the version."""
    deactivated = await db.answer_keys.update_many(
        {"examVersion": answer_key.examVersion, "isActive": True},
        {"$set": {"isActive": False}}
    )
    if deactivated.modified_count:
        logger.info(f"Deactivated {deactivated.modified_count} answer key(s) for version {answer_key.examVersion}")

    key_data = answer_key.to_document()
    key_data["createdAt"] = datetime.now(timezone.utc)
    result = await db.answer_keys.insert_one(key_data)
    return str(result.inserted_id)


async def list_answer_keys(db, exam_version: Optional[str] = None) -> list:
    query = {"examVersion": exam_version} if exam_version else {}
    cursor = db.answer_keys.find(query).sort("createdAt", -1)
    keys = await cursor.to_list(length=None)

    for key in keys:
        key["keyId"] = str(key.pop("_id"))
    return keys
