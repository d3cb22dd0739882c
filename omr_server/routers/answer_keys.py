from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
import logging

from omr_server.core.errors import AnswerKeyNotFound, MalformedAnswerKey
from omr_server.dependencies import get_answer_key_resolver, get_database
from omr_server.models.answer_key import AnswerKeyCreate, AnswerKeyResponse
from omr_server.services.answer_keys import list_answer_keys, save_answer_key

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/")
async def create_answer_key(answer_key: AnswerKeyCreate, db=Depends(get_database)):
    try:
        key_id = await save_answer_key(db, answer_key)
        logger.info(f"Saved answer key {key_id} for version {answer_key.examVersion}")

        return {
            "keyId": key_id,
            "examVersion": answer_key.examVersion,
            "message": "Answer key saved successfully"
        }
    except Exception as e:
        logger.error(f"Failed to save answer key: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to save answer key: {str(e)}")


@router.get("/", response_model=List[AnswerKeyResponse])
async def get_answer_keys(examVersion: Optional[str] = None, db=Depends(get_database)):
    try:
        return await list_answer_keys(db, examVersion)
    except Exception as e:
        logger.error(f"Failed to fetch answer keys: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch answer keys")


@router.get("/{exam_version}/active", response_model=dict)
async def get_active_answer_key(exam_version: str, resolver=Depends(get_answer_key_resolver)):
    try:
        answer_key = await resolver.resolve(exam_version)
        return answer_key.model_dump(mode="json")
    except AnswerKeyNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MalformedAnswerKey as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to resolve answer key for version {exam_version}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch answer key")
