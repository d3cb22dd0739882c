from typing import Tuple

OPTIONS: Tuple[str, ...] = ("A", "B", "C", "D")
INVALID = "INVALID"  # no mark or multiple marks
SELECTIONS: Tuple[str, ...] = OPTIONS + (INVALID,)

TOTAL_QUESTIONS = 100


class SubjectSegmentation:
    """Partition of question numbers into equal, contiguous subject blocks.

    Question ``q`` (1-based) belongs to subject ``ceil(q / questions_per_subject)``.
    """

    def __init__(self, subject_count: int, questions_per_subject: int):
        if subject_count < 1 or questions_per_subject < 1:
            raise ValueError("subject_count and questions_per_subject must be positive")
        self.subject_count = subject_count
        self.questions_per_subject = questions_per_subject

    @property
    def total_questions(self) -> int:
        return self.subject_count * self.questions_per_subject

    def subject_of(self, question_number: int) -> int:
        """Return the 1-based subject index of a question."""
        if not 1 <= question_number <= self.total_questions:
            raise ValueError(f"Question {question_number} outside 1..{self.total_questions}")
        return (question_number - 1) // self.questions_per_subject + 1

    def question_range(self, subject: int) -> range:
        start = (subject - 1) * self.questions_per_subject + 1
        return range(start, start + self.questions_per_subject)

    def check(self, total_questions: int) -> None:
        if self.total_questions != total_questions:
            raise ValueError(
                f"{self.subject_count} subjects x {self.questions_per_subject} questions "
                f"does not cover {total_questions} questions"
            )

    def __eq__(self, other):
        if not isinstance(other, SubjectSegmentation):
            return NotImplemented
        return (self.subject_count, self.questions_per_subject) == (
            other.subject_count, other.questions_per_subject
        )

    def __hash__(self):
        return hash((self.subject_count, self.questions_per_subject))

    def __repr__(self):
        return f"SubjectSegmentation(subject_count={self.subject_count}, questions_per_subject={self.questions_per_subject})"


# Five subjects of twenty questions each
SEGMENTATION = SubjectSegmentation(subject_count=5, questions_per_subject=20)
SEGMENTATION.check(TOTAL_QUESTIONS)


def check_question_number(question_number: int, total_questions: int = TOTAL_QUESTIONS) -> int:
    if isinstance(question_number, bool) or not 1 <= question_number <= total_questions:
        raise ValueError(f"Question number must be within 1..{total_questions}, got {question_number}")
    return question_number
