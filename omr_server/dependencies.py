from fastapi import Depends, Request

from omr_server import config
from omr_server.services.answer_keys import MongoAnswerKeyResolver
from omr_server.services.recognition import VisionRecognitionProvider
from omr_server.services.recorder import EvaluationRecorder


def get_database(request: Request):
    return request.app.state.database


def get_answer_key_resolver(db=Depends(get_database)):
    return MongoAnswerKeyResolver(db)


def get_evaluation_recorder(db=Depends(get_database)):
    return EvaluationRecorder(db)


def get_recognition_provider():
    return VisionRecognitionProvider(
        api_url=config.VISION_API_URL,
        api_key=config.VISION_API_KEY,
        model=config.VISION_MODEL,
        timeout=config.RECOGNITION_TIMEOUT,
    )
