from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
from datetime import datetime, timezone
import logging

from omr_server.core.errors import AnswerKeyNotFound, MalformedAnswerKey, MalformedAnswerSet
from omr_server.dependencies import get_answer_key_resolver, get_evaluation_recorder, get_recognition_provider
from omr_server.models.evaluation import (
    BatchProcessRequest,
    EvaluationRecord,
    EvaluationStatus,
    ProcessSheetRequest,
    ScoreSheetRequest,
)
from omr_server.models.recognition import RawAnswerSet
from omr_server.services.pipeline import evaluate_sheet, summarize
from omr_server.services.recognition import RecognitionFailed

logger = logging.getLogger(__name__)

router = APIRouter()


def to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, AnswerKeyNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (MalformedAnswerSet, MalformedAnswerKey)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RecognitionFailed):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=f"Processing failed: {str(e)}")


async def process_one(sheet: ProcessSheetRequest, resolver, recorder, provider) -> dict:
    logger.info(f"Processing OMR for student {sheet.studentName} ({sheet.rollNumber}), version {sheet.examVersion}")
    record = await evaluate_sheet(
        student=sheet.student,
        exam_version=sheet.examVersion,
        resolver=resolver,
        recorder=recorder,
        load_answers=lambda: provider.recognize(sheet.imageBase64),
    )
    return summarize(record)


@router.post("/process")
async def process_sheet(
    sheet: ProcessSheetRequest,
    resolver=Depends(get_answer_key_resolver),
    recorder=Depends(get_evaluation_recorder),
    provider=Depends(get_recognition_provider)
):
    """Recognize, score and record a single sheet image."""
    try:
        evaluation = await process_one(sheet, resolver, recorder, provider)
        return {"success": True, "evaluation": evaluation}
    except Exception as e:
        logger.error(f"Error processing OMR for {sheet.rollNumber}: {str(e)}")
        raise to_http_error(e)


@router.post("/score")
async def score_sheet(
    sheet: ScoreSheetRequest,
    resolver=Depends(get_answer_key_resolver),
    recorder=Depends(get_evaluation_recorder)
):
    """Score answers supplied by the caller, e.g. after manual correction."""

    async def load_answers():
        return RawAnswerSet.from_payload({"answers": sheet.answers, "confidence": sheet.confidence})

    try:
        record = await evaluate_sheet(
            student=sheet.student,
            exam_version=sheet.examVersion,
            resolver=resolver,
            recorder=recorder,
            load_answers=load_answers,
        )
        return {"success": True, "evaluation": summarize(record)}
    except Exception as e:
        logger.error(f"Error scoring answers for {sheet.rollNumber}: {str(e)}")
        raise to_http_error(e)


@router.post("/batch")
async def batch_process_sheets(
    batch: BatchProcessRequest,
    resolver=Depends(get_answer_key_resolver),
    recorder=Depends(get_evaluation_recorder),
    provider=Depends(get_recognition_provider)
):
    """Process several sheets; a failing sheet does not stop the others."""
    logger.info(f"Batch processing {len(batch.sheets)} answer sheets")
    results = []

    for sheet in batch.sheets:
        try:
            evaluation = await process_one(sheet, resolver, recorder, provider)
            results.append({"rollNumber": sheet.rollNumber, "success": True, "evaluation": evaluation})
        except Exception as e:
            error = to_http_error(e)
            logger.error(f"Failed to process sheet for {sheet.rollNumber}: {str(e)}")
            results.append({
                "rollNumber": sheet.rollNumber,
                "success": False,
                "statusCode": error.status_code,
                "error": error.detail
            })

    return {
        "success": True,
        "totalSheets": len(batch.sheets),
        "processedSuccessfully": len([r for r in results if r["success"]]),
        "results": results,
        "processingTime": datetime.now(timezone.utc).isoformat()
    }


@router.get("/", response_model=List[EvaluationRecord])
async def get_evaluations(
    examVersion: Optional[str] = None,
    status: Optional[EvaluationStatus] = None,
    recorder=Depends(get_evaluation_recorder)
):
    try:
        return await recorder.list_evaluations(examVersion, status.value if status else None)
    except Exception as e:
        logger.error(f"Failed to fetch evaluations: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch evaluations")


@router.get("/{evaluation_id}", response_model=EvaluationRecord)
async def get_evaluation(evaluation_id: str, recorder=Depends(get_evaluation_recorder)):
    try:
        evaluation = await recorder.get(evaluation_id)
        if not evaluation:
            raise HTTPException(status_code=404, detail="Evaluation not found")
        return evaluation
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch evaluation {evaluation_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch evaluation")
