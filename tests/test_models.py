import pytest

from prep_engine.blueprint import (
    FULL_WINDOW_SEQUENCE,
    SUBJECTS,
    plan_for,
    subject_sequence,
    window_blocks,
)
from prep_engine.models import Difficulty, Question, QuestionSlot, SlotState, TestKind


def test_question_from_payload_accepts_wire_keys() -> None:
    question = Question.from_payload(
        {
            "id": 12,
            "text": "2 + 2 = ?",
            "options": ["3", "4", "5", "6"],
            "correctAnswer": 1,
            "explanation": "Basic addition",
            "subject": "Mathematics",
            "difficulty": "easy",
            "is_important": True,
        }
    )
    assert question.correct_answer_index == 1
    assert question.difficulty is Difficulty.EASY
    assert question.is_important
    assert question.id == "12"
    assert question.to_payload()["correctAnswer"] == 1


def test_question_from_payload_accepts_snake_case() -> None:
    question = Question.from_payload(
        {
            "text": "q",
            "options": ["a", "b", "c", "d"],
            "correct_answer_index": 3,
            "subject": "Physics",
            "isImportant": True,
        }
    )
    assert question.correct_answer_index == 3
    assert question.difficulty is Difficulty.MEDIUM
    assert question.is_important


@pytest.mark.parametrize(
    "payload",
    [
        {"text": "q", "options": ["a", "b", "c"], "correctAnswer": 0, "subject": "Physics"},
        {"text": "q", "options": ["a", "b", "c", "d"], "correctAnswer": 4, "subject": "Physics"},
        {"text": "q", "options": ["a", "b", "c", "d"], "correctAnswer": "1", "subject": "Physics"},
        {"text": " ", "options": ["a", "b", "c", "d"], "correctAnswer": 0, "subject": "Physics"},
        ["not", "a", "dict"],
    ],
)
def test_invalid_payload_rejected(payload) -> None:
    with pytest.raises(ValueError):
        Question.from_payload(payload)


def test_slot_fills_once() -> None:
    slot = QuestionSlot(0)
    assert slot.state is SlotState.LOCKED
    slot.fill(Question.from_payload(
        {"text": "q", "options": ["a", "b", "c", "d"], "correctAnswer": 0, "subject": "Physics"}
    ))
    assert slot.state is SlotState.LOADED
    with pytest.raises(RuntimeError):
        slot.fill(slot.question)


def test_full_plan() -> None:
    plan = plan_for("Full")
    assert plan.test_kind is TestKind.FULL
    assert plan.total_question_count == 200
    assert plan.window_size == 50
    assert plan.duration_seconds == 180 * 60
    assert plan.target == "Full"


def test_subject_plan() -> None:
    plan = plan_for(TestKind.SUBJECT, "Operating Systems")
    assert plan.window_count == 1
    assert plan.total_question_count == 30
    assert plan.duration_seconds == 30 * 60
    assert plan.target == "Operating Systems"
    with pytest.raises(ValueError):
        plan_for("Subject", "Astrology")


def test_full_windows_cover_fifty_known_subjects() -> None:
    for index, blocks in enumerate(FULL_WINDOW_SEQUENCE):
        assert sum(count for _, count in blocks) == 50
        assert all(subject in SUBJECTS for subject, _ in blocks)
        assert len(subject_sequence(index)) == 50
    assert subject_sequence(0)[24:26] == ["Mathematics", "Physics"]
    with pytest.raises(ValueError):
        window_blocks(4)
