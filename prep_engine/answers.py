"""Answer capture and review flags for one session."""
from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Mapping

from prep_engine.errors import SessionClosed, SlotNotReady
from prep_engine.models import OPTION_COUNT, QuestionSlot


def check_slot(slots: list[QuestionSlot], slot_index: int) -> QuestionSlot:
    if not 0 <= slot_index < len(slots):
        raise ValueError(f"Slot {slot_index} out of range")
    slot = slots[slot_index]
    if not slot.is_loaded:
        raise SlotNotReady(slot_index)
    return slot


class AnswerTracker:
    """Selected option per slot index. Absence means unanswered."""

    def __init__(
        self, slots: list[QuestionSlot], is_writable: Callable[[], bool] = lambda: True
    ) -> None:
        self._slots = slots
        self._is_writable = is_writable
        self._answers: dict[int, int] = {}

    def set_answer(self, slot_index: int, option_index: int) -> None:
        """
        Record the candidate's choice, replacing any earlier one.

        Raises:
            SessionClosed: the session was submitted.
            SlotNotReady: the slot's question has not arrived.
            ValueError: slot or option index out of range.
        """
        if not self._is_writable():
            raise SessionClosed("Answers are read-only after submission")
        check_slot(self._slots, slot_index)
        if isinstance(option_index, bool) or not 0 <= option_index < OPTION_COUNT:
            raise ValueError(f"Option {option_index} out of range")
        self._answers[slot_index] = option_index

    def get_answer(self, slot_index: int) -> int | None:
        return self._answers.get(slot_index)

    @property
    def answers(self) -> Mapping[int, int]:
        return MappingProxyType(self._answers)

    def answered_in(self, window: range) -> int:
        return sum(1 for index in window if index in self._answers)

    def __len__(self) -> int:
        return len(self._answers)


class BookmarkMark:
    """Slot indices flagged for later review; frozen once the session closes."""

    def __init__(
        self, slots: list[QuestionSlot], is_writable: Callable[[], bool] = lambda: True
    ) -> None:
        self._slots = slots
        self._is_writable = is_writable
        self._marked: set[int] = set()

    def toggle(self, slot_index: int) -> bool:
        """Flip the flag on a slot; returns whether it is now flagged."""
        if not self._is_writable():
            raise SessionClosed("Flags are read-only after submission")
        check_slot(self._slots, slot_index)
        if slot_index in self._marked:
            self._marked.remove(slot_index)
            return False
        self._marked.add(slot_index)
        return True

    def __contains__(self, slot_index: object) -> bool:
        return slot_index in self._marked

    @property
    def marked(self) -> frozenset[int]:
        return frozenset(self._marked)
