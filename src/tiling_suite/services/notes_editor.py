"""Job measurement notes with undo/redo."""

from __future__ import annotations

from tiling_suite.services.history import HistoryStore

EXAMPLE_INPUT = """Sitting room floor 60m2 (60x60)
Kitchen wall 15m2
Kitchen floor 12m2
Toilet wall 22m2
Toilet floor 5m2
Bedroom floor 16m2
Steps 8 pcs"""


class JobNotesEditor:
    """Ordered list of free-text notes backed by a linear history."""

    def __init__(self, notes: list[str] | None = None) -> None:
        self._history: HistoryStore[list[str]] = HistoryStore(list(notes or []))

    @property
    def notes(self) -> list[str]:
        return list(self._history.value)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def add(self, note: str) -> bool:
        note = note.strip()
        if not note:
            return False
        return self._history.commit(lambda notes: notes + [note])

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self._history.value):
            return False
        return self._history.commit(
            lambda notes: [value for position, value in enumerate(notes) if position != index]
        )

    def use_example(self) -> bool:
        return self._history.commit(_split_lines(EXAMPLE_INPUT))

    def append_scanned_text(self, text: str) -> bool:
        lines = _split_lines(text)
        if not lines:
            return False
        return self._history.commit(lambda notes: notes + lines)

    def undo(self) -> bool:
        return self._history.undo()

    def redo(self) -> bool:
        return self._history.redo()

    def reset(self, notes: list[str] | None = None) -> None:
        self._history.reset(list(notes or []))

    def combined_text(self) -> str:
        return "\n".join(self._history.value)


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]
