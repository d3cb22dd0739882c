from typing import Iterable, Sequence

from omr_server.core.errors import AnswerKeyNotFound
from omr_server.models.answer_key import AnswerKey


class AnswerKeyResolver:
    """Looks up the one active answer key for an exam version.

    Implementations return an immutable ``AnswerKey`` snapshot and raise
    ``AnswerKeyNotFound`` when zero or several active keys exist; they never
    choose between several active keys.
    """

    async def resolve(self, exam_version: str) -> AnswerKey:
        raise NotImplementedError


def pick_active(exam_version: str, candidates: Sequence):
    if len(candidates) != 1:
        raise AnswerKeyNotFound(exam_version, len(candidates))
    return candidates[0]


def is_blank(exam_version) -> bool:
    return not isinstance(exam_version, str) or not exam_version.strip()


class InMemoryAnswerKeyResolver(AnswerKeyResolver):
    """Resolver over a fixed collection of answer keys."""

    def __init__(self, answer_keys: Iterable[AnswerKey] = ()):
        self.answer_keys = tuple(answer_keys)

    async def resolve(self, exam_version: str) -> AnswerKey:
        if is_blank(exam_version):
            raise AnswerKeyNotFound(exam_version or "")
        active = [k for k in self.answer_keys if k.examVersion == exam_version and k.isActive]
        return pick_active(exam_version, active)
