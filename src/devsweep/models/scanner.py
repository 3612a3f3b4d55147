"""Base scanner interface."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from devsweep.core.cancel import CancelToken, ScanCancelled
from devsweep.models.item import Item
from devsweep.models.messages import ScanComplete

if TYPE_CHECKING:
    from devsweep.core.walker import WalkCounters

log = logging.getLogger(__name__)

# Top-level system directories that never hold projects.
SYSTEM_DIRS = frozenset(
    {"Library", "Applications", "System", "usr", "var", "tmp", "opt", "bin", "sbin", "etc"}
)

# Substrings that mark a hidden directory as a plausible project container.
PROJECT_HINTS = (
    "workspace", "projects", "code", "dev", "development",
    "repos", "repositories", "src", "source",
)


@dataclass(frozen=True)
class ScannerInfo:
    """Static display metadata of a scanner."""

    id: str
    name: str
    icon: str
    description: str


def might_contain_projects(dir_name: str) -> bool:
    """Whether a hidden directory name hints at development content."""
    lowered = dir_name.lower()
    return any(hint in lowered for hint in PROJECT_HINTS)


def has_hidden_segment(path: str) -> bool:
    """Whether any segment of a POSIX path starts with a dot."""
    return any(part.startswith(".") and part != ".." for part in path.split("/") if part)


class Scanner(ABC):
    """Base class for all artifact scanners.

    A scanner is a traversal policy: it decides which directories to prune,
    which directories are targets, and how a target is sized.  The walk
    itself lives in ``devsweep.core.walker`` and is shared by every scanner.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier, e.g. 'node_modules'."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What this scanner finds."""

    @property
    def icon(self) -> str:
        return "📁"

    @property
    def reports_progress(self) -> bool:
        """Whether ``scan`` updates live walk counters."""
        return True

    @property
    def nested_markers(self) -> tuple[str, ...]:
        """Path fragments that mean a path is already inside a target."""
        return ()

    def identify(self) -> ScannerInfo:
        return ScannerInfo(self.id, self.name, self.icon, self.description)

    @abstractmethod
    def should_skip_dir(self, path: str, dir_name: str) -> bool:
        """Whether to prune *path* without descending into it."""

    @abstractmethod
    def is_target(self, path: str, dir_name: str) -> bool:
        """Whether *path* is an artifact this scanner reports."""

    def match(self, path: str, dir_name: str) -> Scanner | None:
        """Return the scanner claiming *path* as a target, or None."""
        return self if self.is_target(path, dir_name) else None

    def resolve_project_context(self, path: str) -> Path:
        """Best-effort owning project directory of a target."""
        return Path(path).parent

    def measure(self, path: Path | str, cancel: CancelToken | None = None) -> tuple[int, int]:
        """Return (size, file_count) of *path*; may raise ScanCancelled."""
        from devsweep.utils import dir_info

        return dir_info(path, cancel)

    def resolve_size(self, item: Item, cancel: CancelToken | None = None) -> bool:
        """Fill in size and file count of *item*; leave them untouched on failure."""
        try:
            item.size, item.item_count = self.measure(item.path, cancel)
        except ScanCancelled:
            log.debug("Size calculation interrupted for %s", item.path)
            return False
        return True

    def scan(
        self,
        cancel: CancelToken,
        root: Path | str,
        counters: WalkCounters | None = None,
    ) -> Iterator[Item]:
        """Yield items as the walk discovers them.

        Raises ScanCancelled once *cancel* fires; items already yielded stay valid.
        """
        from devsweep.core.walker import walk

        return walk(self, root, cancel, counters)

    def collect(self, cancel: CancelToken, root: Path | str) -> ScanComplete:
        """Walk the whole tree in the calling thread and return one batch."""
        items: list[Item] = []
        error: Exception | None = None
        try:
            for item in self.scan(cancel, root):
                items.append(item)
        except ScanCancelled as exc:
            error = exc
        return ScanComplete(
            scanner_id=self.id,
            items=items,
            total_size=sum(i.size for i in items),
            error=error,
        )


class ArtifactDirScanner(Scanner, ABC):
    """Base class for scanners that look for one well-known directory name.

    Subclasses set the class attributes below; the skip/target policy is
    shared.
    """

    target_name: str = ""
    manifests: tuple[str, ...] = ()
    manifest_required: bool = False
    skip_all_hidden: bool = False
    system_dirs: frozenset[str] = SYSTEM_DIRS
    build_dirs: frozenset[str] = frozenset()
    hidden_skip: frozenset[str] = frozenset()
    hidden_allow: frozenset[str] = frozenset()

    @property
    def nested_markers(self) -> tuple[str, ...]:
        return (f"/{self.target_name}/",)

    def is_nested(self, path: str) -> bool:
        return any(marker in path for marker in self.nested_markers)

    def should_skip_dir(self, path: str, dir_name: str) -> bool:
        if dir_name in self.system_dirs:
            return True
        if dir_name == "private" and path == "/private":
            return True
        if self.is_nested(path):
            return True

        if dir_name.startswith(".") and dir_name != "..":
            if self.skip_all_hidden or dir_name in self.hidden_skip:
                return True
            if dir_name in self.hidden_allow:
                return False
            return not might_contain_projects(dir_name)

        return dir_name in self.build_dirs

    def is_target(self, path: str, dir_name: str) -> bool:
        if dir_name != self.target_name:
            return False
        if self.is_nested(path) or has_hidden_segment(path):
            return False
        if self.manifest_required:
            parent = os.path.dirname(path)
            return any(os.path.exists(os.path.join(parent, m)) for m in self.manifests)
        return True

    def resolve_project_context(self, path: str) -> Path:
        parent = Path(path).parent
        if not any((parent / m).is_file() for m in self.manifests):
            log.debug("No %s next to %s", " or ".join(self.manifests) or "manifest", path)
        return parent
