"""Exceptions raised by the session engine."""


class SessionError(Exception):
    """Base class for session engine errors."""


class GenerationFailure(SessionError):
    """Upstream question source failed to produce questions."""


class SlotNotReady(SessionError):
    """A command targeted a slot whose question has not arrived yet."""

    def __init__(self, slot_index: int) -> None:
        super().__init__(f"Slot {slot_index} is not loaded yet")
        self.slot_index = slot_index


class SessionClosed(SessionError):
    """A mutation was attempted on a session that no longer accepts writes."""


class SessionAborted(SessionError):
    """The session could not start (no questions for the first window)."""


class PersistenceFailure(SessionError):
    """Saving the attempt summary or a bookmark failed."""
