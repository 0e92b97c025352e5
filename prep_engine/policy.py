"""Window advancement strategies."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol


class WindowView(Protocol):
    """What a policy may observe about a session's windows."""

    @property
    def current_window_index(self) -> int: ...

    @property
    def window_count(self) -> int: ...

    def is_window_requested(self, index: int) -> bool: ...

    def is_window_satisfied(self, index: int) -> bool: ...


class WindowAdvancementPolicy(ABC):
    """Decides when windows load and when the candidate may move on."""

    name: str

    @abstractmethod
    def preload_all(self) -> bool:
        """Whether every window loads up front, in index order."""

    @abstractmethod
    def can_advance(self, view: WindowView) -> bool:
        """Whether the candidate may move from the current window to the next."""

    def can_finish(self, view: WindowView) -> bool:
        """Whether advancing past the last window submits the session."""
        return False


class GatedPolicy(WindowAdvancementPolicy):
    """
    Window n+1 loads only once window n is answered in full.
    Moving past the last answered window finishes the test.
    """

    name = "gated"

    def preload_all(self) -> bool:
        return False

    def can_advance(self, view: WindowView) -> bool:
        current = view.current_window_index
        if current + 1 >= view.window_count:
            return False
        return view.is_window_satisfied(current)

    def can_finish(self, view: WindowView) -> bool:
        current = view.current_window_index
        return current + 1 == view.window_count and view.is_window_satisfied(current)


class EagerPolicy(WindowAdvancementPolicy):
    """All windows load immediately; only navigation into unloaded ones is gated."""

    name = "eager"

    def preload_all(self) -> bool:
        return True

    def can_advance(self, view: WindowView) -> bool:
        nxt = view.current_window_index + 1
        if nxt >= view.window_count:
            return False
        return view.is_window_requested(nxt)


POLICIES: dict[str, type[WindowAdvancementPolicy]] = {
    GatedPolicy.name: GatedPolicy,
    EagerPolicy.name: EagerPolicy,
}


def get_policy(name: str | None = None) -> WindowAdvancementPolicy:
    """Instantiate a policy by name; gated when unspecified."""
    key = (name or GatedPolicy.name).strip().lower()
    try:
        return POLICIES[key]()
    except KeyError:
        raise ValueError(f"Unknown window policy: {name!r}") from None
