import pytest
from types import SimpleNamespace

from bson import ObjectId

from omr_server.core.segmentation import OPTIONS, TOTAL_QUESTIONS
from omr_server.models.answer_key import AnswerKey
from omr_server.models.recognition import RawAnswerSet
from omr_server.services.recognition import RecognitionProvider


def cycle_answers(total: int = TOTAL_QUESTIONS) -> dict:
    """Answers A, B, C, D, A, ... for questions 1..total."""
    return {q: OPTIONS[(q - 1) % len(OPTIONS)] for q in range(1, total + 1)}


def make_key(answers: dict = None, version: str = "A", **fields) -> AnswerKey:
    return AnswerKey(
        examVersion=version,
        answers=cycle_answers() if answers is None else answers,
        **fields
    )


def key_document(answers: dict = None, version: str = "A", is_active: bool = True, **fields) -> dict:
    answers = cycle_answers() if answers is None else answers
    doc = {
        "examVersion": version,
        "examName": "Mock Test",
        "totalQuestions": TOTAL_QUESTIONS,
        "answers": {str(q): a for q, a in answers.items()},
        "isActive": is_active,
    }
    doc.update(fields)
    return doc


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, field, direction=1):
        self.docs = sorted(self.docs, key=lambda d: d.get(field), reverse=direction == -1)
        return self

    def limit(self, count):
        self.docs = self.docs[:count]
        return self

    async def to_list(self, length=None):
        docs = self.docs if length is None else self.docs[:length]
        return [dict(d) for d in docs]


class FakeCollection:
    """In-memory stand-in for the subset of a motor collection the server uses."""

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    def find(self, query=None):
        return FakeCursor([d for d in self.docs if self._matches(d, query or {})])

    async def find_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_many(self, query, update):
        modified = 0
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update["$set"])
                modified += 1
        return SimpleNamespace(matched_count=modified, modified_count=modified)


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.pinged = False

    def __getattr__(self, name):
        if name.startswith("__"):
            raise AttributeError(name)
        return self.collections.setdefault(name, FakeCollection())

    async def command(self, name):
        self.pinged = True
        return {"ok": 1}


class StubRecognitionProvider(RecognitionProvider):
    def __init__(self, answer_set: RawAnswerSet = None, error: Exception = None):
        self.answer_set = answer_set
        self.error = error
        self.calls = 0

    async def recognize(self, image_base64):
        self.calls += 1
        if self.error:
            raise self.error
        return self.answer_set


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def answer_key():
    return make_key()
