"""One-shot cache cleanups that need no item selection."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from devsweep.models.clean_result import CleanResult
from devsweep.utils import bytes_to_human, dir_info, has_command, remove_path, resolve_home

log = logging.getLogger(__name__)

# Timeout for external cache-clean commands (seconds).
_COMMAND_TIMEOUT = 600

CleanResultCallback = Callable[[CleanResult], None]

# Directories the .DS_Store sweep never enters, at any depth.
_SYSTEM_SKIP = frozenset({"Library", "Applications", "System"})


@dataclass(frozen=True)
class DirectCleanup:
    """A cache cleanup: fixed directories under $HOME plus an optional command."""

    id: str
    name: str
    description: str
    icon: str
    paths: tuple[str, ...] = ()
    command: tuple[str, ...] = ()
    # Replaces the directory/command routine when set.
    handler: Callable[[DirectCleanup, Path], CleanResult] | None = field(default=None, compare=False)

    def directories(self, home: Path) -> list[Path]:
        return [home / p for p in self.paths]


def _clean_system(cleanup: DirectCleanup, home: Path) -> CleanResult:
    """Delete .DS_Store files under *home* and empty ~/.Trash, keeping the folder."""
    freed = 0
    removed = 0
    errors: list[str] = []

    for dirpath, dirnames, filenames in os.walk(home):
        dirnames[:] = [d for d in dirnames if d not in _SYSTEM_SKIP]
        if ".DS_Store" not in filenames:
            continue
        path = os.path.join(dirpath, ".DS_Store")
        try:
            size = os.lstat(path).st_size
            os.unlink(path)
        except OSError as e:
            log.debug("Cannot remove %s: %s", path, e)
            continue
        freed += size
        removed += 1

    trash = home / ".Trash"
    if trash.is_dir():
        try:
            entries = list(trash.iterdir())
        except OSError as e:
            errors.append(f"{trash}: {e}")
            entries = []
        for entry in entries:
            try:
                if entry.is_dir() and not entry.is_symlink():
                    size, _count = dir_info(entry)
                else:
                    size = entry.lstat().st_size
                remove_path(entry)
            except OSError as e:
                errors.append(f"{entry}: {e}")
                continue
            freed += size

    description = f"Removed {removed} .DS_Store files"
    if trash.is_dir():
        description += " and emptied Trash"
    if freed:
        description = f"{description} ({bytes_to_human(freed)} freed)"
    if errors:
        log.warning("Cleanup '%s' finished with errors: %s", cleanup.id, "; ".join(errors))
    return CleanResult(
        cleanup_id=cleanup.id,
        description=description,
        success=not errors,
        bytes_freed=freed,
        error="; ".join(errors),
    )


_CATALOG: tuple[DirectCleanup, ...] = (
    DirectCleanup(
        id="npm_cache",
        name="Clean npm cache",
        description="Clear npm cache directory",
        icon="📦",
        paths=(".npm",),
        command=("npm", "cache", "clean", "--force"),
    ),
    DirectCleanup(
        id="yarn_cache",
        name="Clean Yarn cache",
        description="Clear Yarn v1 and Berry cache directories",
        icon="🧶",
        paths=(".yarn/cache", ".yarn/berry/cache", "Library/Caches/Yarn"),
        command=("yarn", "cache", "clean"),
    ),
    DirectCleanup(
        id="bun_cache",
        name="Clean Bun cache",
        description="Clear Bun cache directories",
        icon="⚡",
        paths=(".bun/install/cache", ".bun/cache", "Library/Caches/bun"),
    ),
    DirectCleanup(
        id="cocoapods_cache",
        name="Clean CocoaPods cache",
        description="Remove CocoaPods cache directory",
        icon="🍎",
        paths=("Library/Caches/CocoaPods",),
    ),
    DirectCleanup(
        id="xcode",
        name="Clean Xcode caches",
        description="Remove Xcode DerivedData and simulator caches",
        icon="🗄️",
        paths=("Library/Developer/Xcode/DerivedData", "Library/Developer/CoreSimulator/Caches"),
    ),
    DirectCleanup(
        id="docker",
        name="Clean Docker containers & images",
        description="Prune Docker system (containers, images, networks)",
        icon="🐳",
        command=("docker", "system", "prune", "-a", "--volumes", "-f"),
    ),
    DirectCleanup(
        id="system",
        name="Clean system caches",
        description="Remove .DS_Store files and empty the Trash",
        icon="🧹",
        handler=_clean_system,
    ),
)


def get_all_cleanups() -> list[DirectCleanup]:
    return list(_CATALOG)


def get_cleanup(cleanup_id: str) -> DirectCleanup | None:
    return next((c for c in _CATALOG if c.id == cleanup_id), None)


def run_cleanup(cleanup: DirectCleanup, home: Path | None = None) -> CleanResult:
    """Remove the cleanup's directories, then run its command if installed."""
    home = home or resolve_home()
    if cleanup.handler is not None:
        return cleanup.handler(cleanup, home)
    freed = 0
    errors: list[str] = []

    for directory in cleanup.directories(home):
        if not directory.exists():
            continue
        size, _count = dir_info(directory)
        try:
            remove_path(directory)
            freed += size
        except OSError as e:
            errors.append(f"{directory}: {e}")

    if cleanup.command:
        if has_command(cleanup.command[0]):
            try:
                subprocess.run(list(cleanup.command), capture_output=True, check=True, timeout=_COMMAND_TIMEOUT)
            except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
                errors.append(f"{' '.join(cleanup.command)}: {e}")
        elif not cleanup.paths:
            errors.append(f"{cleanup.command[0]} is not installed")

    description = cleanup.description
    if freed:
        description = f"{description} ({bytes_to_human(freed)} freed)"
    if errors:
        log.warning("Cleanup '%s' finished with errors: %s", cleanup.id, "; ".join(errors))

    return CleanResult(
        cleanup_id=cleanup.id,
        description=description,
        success=not errors,
        bytes_freed=freed,
        error="; ".join(errors),
    )


def run_cleanups(
    cleanups: Sequence[DirectCleanup],
    home: Path | None = None,
    on_result: CleanResultCallback | None = None,
) -> list[CleanResult]:
    """Run cleanups one after another, in the given order."""
    results: list[CleanResult] = []
    for cleanup in cleanups:
        try:
            result = run_cleanup(cleanup, home)
        except Exception:
            log.exception("Cleanup '%s' crashed", cleanup.id)
            result = CleanResult(
                cleanup_id=cleanup.id,
                description=cleanup.description,
                success=False,
                error="Cleanup crashed",
            )
        results.append(result)
        if on_result:
            on_result(result)
    return results
