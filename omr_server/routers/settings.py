from fastapi import APIRouter, Depends

from omr_server import config
from omr_server.core.scoring import CONFIDENCE_THRESHOLD
from omr_server.core.segmentation import OPTIONS, SEGMENTATION, TOTAL_QUESTIONS
from omr_server.dependencies import get_database

router = APIRouter()


@router.get("/")
async def get_settings():
    # Scoring constants are fixed in code; this endpoint only reports them
    return {
        "scoring": {
            "totalQuestions": TOTAL_QUESTIONS,
            "subjectCount": SEGMENTATION.subject_count,
            "questionsPerSubject": SEGMENTATION.questions_per_subject,
            "options": list(OPTIONS),
            "confidenceThreshold": CONFIDENCE_THRESHOLD
        },
        "recognition": {
            "model": config.VISION_MODEL,
            "timeout": config.RECOGNITION_TIMEOUT,
            "configured": bool(config.VISION_API_KEY)
        },
        "database": {
            "name": config.MONGODB_DATABASE
        }
    }


@router.post("/test-db")
async def test_database_connection(db=Depends(get_database)):
    try:
        await db.command("ping")
        return {
            "connected": True,
            "status": "connected",
            "message": "Database connection successful"
        }
    except Exception as e:
        return {
            "connected": False,
            "status": "error",
            "message": f"Database connection test failed: {str(e)}"
        }
