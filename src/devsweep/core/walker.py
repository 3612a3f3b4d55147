"""Depth-first directory walk that yields targets as soon as they are found."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from devsweep.core.cancel import CancelToken
from devsweep.models.item import Item

if TYPE_CHECKING:
    from devsweep.models.scanner import Scanner

log = logging.getLogger(__name__)


@dataclass
class WalkCounters:
    """Live counters of a walk.

    Written only by the walking thread; the control loop reads them when it
    builds a progress snapshot.
    """

    directories_scanned: int = 0
    items_found: int = 0
    total_size: int = 0
    current_path: str = ""


def walk(
    scanner: Scanner,
    root: Path | str,
    cancel: CancelToken,
    counters: WalkCounters | None = None,
) -> Iterator[Item]:
    """Walk *root* in pre-order, pruning and matching per *scanner*.

    Targets are yielded immediately and never descended into.  Unreadable
    directories and broken entries are skipped.  The token is checked at
    every directory; once cancelled, ``ScanCancelled`` is raised.
    """
    if counters is None:
        counters = WalkCounters()

    stack = [os.path.abspath(os.fspath(root))]
    while stack:
        cancel.raise_if_cancelled()
        path = stack.pop()
        dir_name = os.path.basename(path)
        counters.directories_scanned += 1
        counters.current_path = path

        if scanner.should_skip_dir(path, dir_name):
            continue

        claimed = scanner.match(path, dir_name)
        if claimed is not None:
            item = _build_item(claimed, path, cancel)
            counters.items_found += 1
            counters.total_size += item.size
            yield item
            continue

        stack.extend(reversed(_subdirectories(path)))


def _subdirectories(path: str) -> list[str]:
    """Sorted child directories of *path*, symlinks excluded."""
    children: list[str] = []
    try:
        with os.scandir(path) as it:
            for entry in it:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        children.append(entry.path)
                except OSError:
                    log.debug("Cannot inspect entry: %s", entry.path)
    except OSError:
        log.debug("Cannot read directory: %s", path)
    children.sort()
    return children


def _build_item(scanner: Scanner, path: str, cancel: CancelToken) -> Item:
    try:
        mtime: datetime | None = datetime.fromtimestamp(os.stat(path, follow_symlinks=False).st_mtime)
    except OSError:
        mtime = None

    item = Item(
        path=Path(path),
        kind=scanner.id,
        last_modified=mtime,
        project_context=scanner.resolve_project_context(path),
    )
    scanner.resolve_size(item, cancel)
    return item
