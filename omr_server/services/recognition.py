import json
import logging
from typing import Optional

import httpx

from omr_server.core.errors import MalformedAnswerSet
from omr_server.core.segmentation import SEGMENTATION, SubjectSegmentation
from omr_server.models.recognition import RawAnswerSet

logger = logging.getLogger(__name__)


class RecognitionFailed(Exception):
    """The vision service could not be reached or returned no usable reply."""


def build_prompt(segmentation: SubjectSegmentation = SEGMENTATION) -> str:
    total = segmentation.total_questions
    subject_lines = "\n".join(
        f"- Subject {s}: Questions {r.start}-{r.stop - 1}"
        for s in range(1, segmentation.subject_count + 1)
        for r in [segmentation.question_range(s)]
    )
    return f"""You are an OMR (Optical Mark Recognition) sheet evaluator. Analyze this OMR answer sheet image and extract the marked answers.

The sheet has {segmentation.subject_count} subjects with {segmentation.questions_per_subject} questions each ({total} questions total):
{subject_lines}

For each question, identify which option (A, B, C, or D) is marked. If no option is clearly marked or multiple options are marked, return "INVALID".

Return ONLY a JSON object in this exact format:
{{
  "answers": {{
    "1": "A",
    "2": "B",
    ...
    "{total}": "D"
  }},
  "confidence": 0.95
}}

Be extremely accurate. If you're unsure about any answer, mark it as "INVALID"."""


def reject_duplicate_keys(pairs):
    obj = {}
    for key, value in pairs:
        if key in obj:
            raise MalformedAnswerSet(f"Recognition reply repeats the key {key!r}")
        obj[key] = value
    return obj


def extract_json_object(text: str) -> dict:
    """Decode the JSON object embedded in free-form model output.

    The object spans from the first ``{`` to the last ``}``; surrounding prose
    or code fences are ignored.
    """
    if not isinstance(text, str):
        raise MalformedAnswerSet("Recognition reply is not text")
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise MalformedAnswerSet("No JSON object found in recognition reply")
    try:
        return json.loads(text[start:end + 1], object_pairs_hook=reject_duplicate_keys)
    except json.JSONDecodeError as e:
        raise MalformedAnswerSet(f"Recognition reply is not valid JSON: {e}") from e


def parse_recognition_text(text: str) -> RawAnswerSet:
    return RawAnswerSet.from_payload(extract_json_object(text))


class RecognitionProvider:
    async def recognize(self, image_base64: str) -> RawAnswerSet:
        raise NotImplementedError


class VisionRecognitionProvider(RecognitionProvider):
    """Reads a sheet image through an OpenAI-compatible chat-completions endpoint."""

    def __init__(self, api_url: str, api_key: str, model: str, timeout: float = 60.0,
                 segmentation: SubjectSegmentation = SEGMENTATION, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.prompt = build_prompt(segmentation)
        self.transport = transport

    def build_request(self, image_base64: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"}
                        }
                    ]
                }
            ],
        }

    async def recognize(self, image_base64: str) -> RawAnswerSet:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, headers=headers, json=self.build_request(image_base64))
        except httpx.HTTPError as e:
            logger.error(f"Recognition request failed: {e}")
            raise RecognitionFailed(f"Failed to reach recognition service: {e}") from e

        if response.is_error:
            logger.error(f"AI processing failed: {response.status_code} {response.text}")
            raise RecognitionFailed(f"Recognition service returned HTTP {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RecognitionFailed(f"Unexpected recognition response: {e}") from e

        answer_set = parse_recognition_text(content)
        logger.info(f"Recognized {len(answer_set.answers)} answers with confidence {answer_set.confidence}")
        return answer_set
