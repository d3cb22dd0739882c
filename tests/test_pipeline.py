import asyncio

import pytest

from conftest import cycle_answers, make_key
from omr_server.core.errors import AnswerKeyNotFound, MalformedAnswerSet
from omr_server.core.resolver import InMemoryAnswerKeyResolver
from omr_server.models.evaluation import StudentIdentity
from omr_server.models.recognition import RawAnswerSet
from omr_server.services.pipeline import evaluate_sheet, summarize
from omr_server.services.recorder import EvaluationRecorder

STUDENT = StudentIdentity(name="Asha Rao", rollNumber="R-042")


def run_pipeline(fake_db, exam_version, load_answers, keys=None):
    resolver = InMemoryAnswerKeyResolver(keys if keys is not None else [make_key(version="A")])
    return asyncio.run(evaluate_sheet(
        student=STUDENT,
        exam_version=exam_version,
        resolver=resolver,
        recorder=EvaluationRecorder(fake_db),
        load_answers=load_answers,
    ))


def answers_loader(answer_set, calls=None):
    async def load():
        if calls is not None:
            calls.append(1)
        return answer_set
    return load


def test_records_scored_evaluation(fake_db):
    record = run_pipeline(fake_db, "A", answers_loader(RawAnswerSet(answers=cycle_answers(), confidence=0.95)))

    assert record["studentIdentity"] == {"name": "Asha Rao", "rollNumber": "R-042"}
    assert record["examVersion"] == "A"
    assert record["subjectScores"] == [20, 20, 20, 20, 20]
    assert record["totalScore"] == 100
    assert record["percentage"] == 100.0
    assert record["status"] == "Completed"
    assert record["detailedResults"]["1"] == {"studentAnswer": "A", "correctAnswer": "A", "isCorrect": True}
    assert len(record["detailedResults"]) == 100
    assert "processedAt" in record

    stored = fake_db.evaluations.docs
    assert len(stored) == 1
    assert str(stored[0]["_id"]) == record["id"]


def test_low_confidence_is_recorded_for_review(fake_db):
    record = run_pipeline(fake_db, "A", answers_loader(RawAnswerSet(answers=cycle_answers(), confidence=0.6)))

    assert record["status"] == "NeedsReview"
    assert record["totalScore"] == 100


def test_missing_key_stops_before_recognition(fake_db):
    calls = []

    with pytest.raises(AnswerKeyNotFound):
        run_pipeline(fake_db, "Z", answers_loader(RawAnswerSet(), calls))

    assert calls == []
    assert fake_db.evaluations.docs == []


def test_malformed_answers_record_nothing(fake_db):
    async def load():
        return RawAnswerSet.from_payload({"answers": {"1": "Q"}, "confidence": 0.9})

    with pytest.raises(MalformedAnswerSet):
        run_pipeline(fake_db, "A", load)

    assert fake_db.evaluations.docs == []


def test_summarize(fake_db):
    record = run_pipeline(fake_db, "A", answers_loader(RawAnswerSet(answers={1: "A"}, confidence=0.9)))

    summary = summarize(record)

    assert summary == {
        "id": record["id"],
        "studentName": "Asha Rao",
        "rollNumber": "R-042",
        "examVersion": "A",
        "subjectScores": [1, 0, 0, 0, 0],
        "totalScore": 1,
        "percentage": 1.0,
        "confidence": 0.9,
        "status": "Completed",
    }
