"""Linear undo/redo history over a single editable value."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")

Update = Union[T, Callable[[T], T]]


@dataclass(frozen=True)
class HistoryState(Generic[T]):
    """Immutable ``past / present / future`` snapshot.

    Transitions return a new state; a transition that changes nothing returns
    ``self`` so callers can detect no-ops with an identity check.
    """

    present: T
    past: tuple[T, ...] = field(default_factory=tuple)
    future: tuple[T, ...] = field(default_factory=tuple)

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def commit(self, update: Update[T]) -> HistoryState[T]:
        """Record a new present value, clearing any redo entries.

        ``update`` may be a value or a callable receiving a copy of the
        present. A candidate equal to the present leaves history untouched.
        """
        if callable(update):
            candidate = update(copy.deepcopy(self.present))
        else:
            candidate = update
        if candidate == self.present:
            return self
        return HistoryState(
            present=candidate,
            past=self.past + (self.present,),
            future=(),
        )

    def undo(self) -> HistoryState[T]:
        if not self.past:
            return self
        return replace(
            self,
            present=self.past[-1],
            past=self.past[:-1],
            future=(self.present,) + self.future,
        )

    def redo(self) -> HistoryState[T]:
        if not self.future:
            return self
        return replace(
            self,
            present=self.future[0],
            past=self.past + (self.present,),
            future=self.future[1:],
        )

    def reset(self, value: T) -> HistoryState[T]:
        return HistoryState(present=value)


class HistoryStore(Generic[T]):
    """Mutable holder of a :class:`HistoryState`."""

    def __init__(self, initial: T) -> None:
        self._state: HistoryState[T] = HistoryState(present=initial)

    @property
    def state(self) -> HistoryState[T]:
        return self._state

    @property
    def value(self) -> T:
        return self._state.present

    @property
    def can_undo(self) -> bool:
        return self._state.can_undo

    @property
    def can_redo(self) -> bool:
        return self._state.can_redo

    def commit(self, update: Update[T]) -> bool:
        """Apply ``update``; return False when it was a no-op."""
        new_state = self._state.commit(update)
        changed = new_state is not self._state
        self._state = new_state
        return changed

    def undo(self) -> bool:
        new_state = self._state.undo()
        changed = new_state is not self._state
        self._state = new_state
        return changed

    def redo(self) -> bool:
        new_state = self._state.redo()
        changed = new_state is not self._state
        self._state = new_state
        return changed

    def reset(self, value: T) -> None:
        """Discard all history and start over from ``value``."""
        self._state = self._state.reset(value)
