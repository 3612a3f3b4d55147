"""Discovered items and deletion outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path


class InvalidTransition(ValueError):
    """Raised when an item's deletion state would move backwards."""


class DeletionState(Enum):
    """Where an item is in a deletion run."""

    UNSET = ""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELETED = "deleted"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (DeletionState.DELETED, DeletionState.FAILED)


_RANKS = {
    DeletionState.UNSET: 0,
    DeletionState.PENDING: 1,
    DeletionState.IN_PROGRESS: 2,
    DeletionState.DELETED: 3,
    DeletionState.FAILED: 3,
}


@dataclass(slots=True)
class Item:
    """A discovered artifact directory that can be removed.

    ``size`` stays ``0`` until it has been resolved.  ``kind`` is the id of
    the scanner that claimed the directory, which matters when a unified
    scan mixes several kinds.  ``project_context`` is advisory only.
    """

    path: Path
    kind: str
    size: int = 0
    last_modified: datetime | None = None
    item_count: int = 0
    project_context: Path | None = None
    selected: bool = False
    deletion_state: DeletionState = DeletionState.UNSET

    def advance(self, state: DeletionState) -> None:
        """Move the deletion state forward, never backwards or sideways."""
        if self.deletion_state.is_terminal or state.rank <= self.deletion_state.rank:
            raise InvalidTransition(
                f"{self.path}: cannot move from {self.deletion_state.name} to {state.name}"
            )
        self.deletion_state = state


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """Outcome of removing one item."""

    path: Path
    size: int
    success: bool
    error: str = ""
