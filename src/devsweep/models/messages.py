"""Messages processed by the controller's update loop.

Workers never touch controller state; they return one of these and the
loop hands it to ``Controller.update``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Union

from devsweep.models.clean_result import CleanResult
from devsweep.models.item import DeletionResult, Item


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class ItemFound:
    """One discovery pulled from a scan stream."""

    session: int
    item: Item


@dataclass(frozen=True)
class ScanComplete:
    """Terminal message of a walk.

    ``error`` is ``None`` for a walk that ran to the end and a
    ``ScanCancelled`` instance when it was stopped; ``items`` holds every
    item discovered either way.
    """

    scanner_id: str
    items: list[Item] = field(default_factory=list)
    total_size: int = 0
    error: Exception | None = None
    session: int = 0


@dataclass(frozen=True)
class SizeResolved:
    session: int
    path: Path
    size: int = 0
    file_count: int = 0
    error: str = ""


@dataclass(frozen=True)
class ProgressTick:
    session: int
    frame: int


@dataclass(frozen=True)
class ItemDeleted:
    path: Path
    success: bool
    error: str = ""


@dataclass(frozen=True)
class DeletionFinished:
    results: tuple[DeletionResult, ...]
    total_freed: int


@dataclass(frozen=True)
class DirectCleanupFinished:
    results: tuple[CleanResult, ...]


Message = Union[
    KeyPressed,
    Resized,
    ItemFound,
    ScanComplete,
    SizeResolved,
    ProgressTick,
    ItemDeleted,
    DeletionFinished,
    DirectCleanupFinished,
]

# A unit of work scheduled off the loop; its return value is fed back in.
Command = Callable[[], Union[Message, None]]
