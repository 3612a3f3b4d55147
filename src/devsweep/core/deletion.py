"""Sequential deletion of selected items with a per-item ledger."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

from devsweep.models.item import DeletionResult, DeletionState, Item
from devsweep.models.messages import DeletionFinished, ItemDeleted
from devsweep.utils import remove_path

log = logging.getLogger(__name__)

Remover = Callable[[Path], None]
ResultCallback = Callable[[DeletionResult], None]


def delete_item(path: Path, remover: Remover = remove_path) -> ItemDeleted:
    """Remove one path and report the outcome; never raises for OS errors."""
    try:
        remover(path)
    except OSError as exc:
        log.warning("Failed to delete %s: %s", path, exc)
        return ItemDeleted(path=path, success=False, error=str(exc))
    log.info("Deleted %s", path)
    return ItemDeleted(path=path, success=True)


class DeletionRun:
    """One deletion run over a fixed list of items.

    The list is captured at construction; later changes to ``selected`` do
    not alter which items the run processes.  Items are processed strictly
    one at a time, in order: ``next_item()`` hands out the next one (marked
    in progress) and ``record()`` stores its outcome.
    """

    def __init__(self, items: Iterable[Item]) -> None:
        self._items: tuple[Item, ...] = tuple(items)
        self._cursor = 0
        self._current: Item | None = None
        self._results: list[DeletionResult] = []
        for item in self._items:
            item.advance(DeletionState.PENDING)

    @classmethod
    def from_selection(cls, items: Iterable[Item]) -> DeletionRun:
        """Snapshot the currently selected items."""
        return cls([item for item in items if item.selected])

    @property
    def items(self) -> tuple[Item, ...]:
        return self._items

    @property
    def results(self) -> tuple[DeletionResult, ...]:
        return tuple(self._results)

    @property
    def total_freed(self) -> int:
        return sum(r.size for r in self._results if r.success)

    @property
    def processed(self) -> int:
        return len(self._results)

    @property
    def current(self) -> Item | None:
        """The item handed out by ``next_item`` and not yet recorded."""
        return self._current

    @property
    def finished(self) -> bool:
        return self._current is None and self._cursor >= len(self._items)

    def next_item(self) -> Item | None:
        """Mark the next item as in progress and return it, or None when done."""
        if self._current is not None:
            raise RuntimeError(f"{self._current.path} is still being deleted")
        if self._cursor >= len(self._items):
            return None
        item = self._items[self._cursor]
        self._cursor += 1
        item.advance(DeletionState.IN_PROGRESS)
        self._current = item
        return item

    def record(self, item: Item, success: bool, error: str = "") -> DeletionResult:
        """Store the outcome of the item handed out by ``next_item``."""
        if item is not self._current:
            raise RuntimeError(f"{item.path} is not the item being deleted")
        item.advance(DeletionState.DELETED if success else DeletionState.FAILED)
        result = DeletionResult(path=item.path, size=item.size, success=success, error=error)
        self._results.append(result)
        self._current = None
        return result

    def finished_message(self) -> DeletionFinished:
        return DeletionFinished(results=self.results, total_freed=self.total_freed)

    def run_all(
        self,
        remover: Remover = remove_path,
        on_result: ResultCallback | None = None,
    ) -> DeletionFinished:
        """Delete every item in one blocking loop."""
        while (item := self.next_item()) is not None:
            outcome = delete_item(item.path, remover)
            result = self.record(item, outcome.success, outcome.error)
            if on_result:
                on_result(result)
        return self.finished_message()
