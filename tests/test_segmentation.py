import pytest

from omr_server.core.segmentation import (
    SEGMENTATION,
    TOTAL_QUESTIONS,
    SubjectSegmentation,
    check_question_number,
)


def test_default_segmentation_covers_all_questions():
    assert SEGMENTATION.subject_count == 5
    assert SEGMENTATION.questions_per_subject == 20
    assert SEGMENTATION.subject_count * SEGMENTATION.questions_per_subject == TOTAL_QUESTIONS
    SEGMENTATION.check(TOTAL_QUESTIONS)


@pytest.mark.parametrize("question, subject", [
    (1, 1), (20, 1), (21, 2), (40, 2), (41, 3), (60, 3), (61, 4), (80, 4), (81, 5), (100, 5),
])
def test_subject_boundaries(question, subject):
    assert SEGMENTATION.subject_of(question) == subject


def test_every_question_lands_in_exactly_one_block():
    blocks = [list(SEGMENTATION.question_range(s)) for s in range(1, 6)]
    assert blocks[0][0] == 1 and blocks[0][-1] == 20
    assert blocks[4][0] == 81 and blocks[4][-1] == 100
    assert sorted(q for block in blocks for q in block) == list(range(1, 101))


@pytest.mark.parametrize("question", [0, 101, -3])
def test_subject_of_rejects_out_of_range(question):
    with pytest.raises(ValueError):
        SEGMENTATION.subject_of(question)


def test_check_rejects_mismatched_total():
    with pytest.raises(ValueError):
        SubjectSegmentation(subject_count=4, questions_per_subject=20).check(TOTAL_QUESTIONS)


def test_non_positive_sizes_rejected():
    with pytest.raises(ValueError):
        SubjectSegmentation(subject_count=0, questions_per_subject=20)


def test_check_question_number():
    assert check_question_number(57) == 57
    with pytest.raises(ValueError):
        check_question_number(0)
    with pytest.raises(ValueError):
        check_question_number(True)
