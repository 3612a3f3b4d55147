"""Composite scanner that finds several artifact kinds in one walk."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from devsweep.models.scanner import SYSTEM_DIRS, Scanner


class UnifiedScanner(Scanner):
    """Delegates to constituent scanners and walks the tree once.

    A directory is a target if any constituent claims it, and is pruned only
    if every constituent would prune it.  System roots and anything inside
    an already-matched target are always pruned.
    """

    def __init__(
        self,
        scanners: Sequence[Scanner],
        scanner_id: str = "unified",
        name: str | None = None,
    ) -> None:
        if not scanners:
            raise ValueError("UnifiedScanner needs at least one constituent scanner")
        self._scanners = tuple(scanners)
        self._id = scanner_id
        self._name = name or " & ".join(s.name for s in self._scanners) + " (unified)"

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Find and remove " + ", ".join(s.id for s in self._scanners) + " directories in one scan"

    @property
    def icon(self) -> str:
        return "🧹"

    @property
    def scanners(self) -> tuple[Scanner, ...]:
        return self._scanners

    @property
    def reports_progress(self) -> bool:
        return all(s.reports_progress for s in self._scanners)

    @property
    def nested_markers(self) -> tuple[str, ...]:
        return tuple(m for s in self._scanners for m in s.nested_markers)

    def should_skip_dir(self, path: str, dir_name: str) -> bool:
        if dir_name in SYSTEM_DIRS:
            return True
        if dir_name == "private" and path == "/private":
            return True
        if any(marker in path for marker in self.nested_markers):
            return True
        return all(s.should_skip_dir(path, dir_name) for s in self._scanners)

    def is_target(self, path: str, dir_name: str) -> bool:
        return self.match(path, dir_name) is not None

    def match(self, path: str, dir_name: str) -> Scanner | None:
        for scanner in self._scanners:
            claimed = scanner.match(path, dir_name)
            if claimed is not None:
                return claimed
        return None

    def resolve_project_context(self, path: str) -> Path:
        claimed = self.match(path, Path(path).name)
        if claimed is None:
            return Path(path).parent
        return claimed.resolve_project_context(path)
