class ScoringError(Exception):
    """Base class for errors raised while resolving keys or scoring a sheet."""


class AnswerKeyNotFound(ScoringError):
    def __init__(self, exam_version: str, active_count: int = 0):
        self.exam_version = exam_version
        self.active_count = active_count
        if active_count > 1:
            message = f"Answer key not found for exam version '{exam_version}': {active_count} active keys"
        else:
            message = f"Answer key not found for exam version '{exam_version}'"
        super().__init__(message)


class MalformedAnswerSet(ScoringError):
    """Recognized answers violate the answer-set schema."""


class MalformedAnswerKey(ScoringError):
    """Stored answer key violates the answer-key schema."""
