"""Interactive state machine: menu → scan → select → delete → summary.

The controller owns all session state and is only ever touched from the
message loop.  ``update`` takes one message, mutates state, and returns
commands (zero-argument callables) for the loop to run off-thread; each
command's return value comes back as another message.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Sequence

from devsweep.core.cancel import CancelToken, ScanCancelled
from devsweep.core.deletion import DeletionRun, Remover, delete_item
from devsweep.core.direct import DirectCleanup, run_cleanups
from devsweep.core.progress import ProgressEstimator, ProgressSnapshot
from devsweep.core.registry import MenuOption, ScannerRegistry
from devsweep.core.stream import ScanStream
from devsweep.models.clean_result import CleanResult
from devsweep.models.item import DeletionResult, Item
from devsweep.models.messages import (
    Command,
    DeletionFinished,
    DirectCleanupFinished,
    ItemDeleted,
    ItemFound,
    KeyPressed,
    Message,
    ProgressTick,
    Resized,
    ScanComplete,
    SizeResolved,
)
from devsweep.models.scanner import Scanner, ScannerInfo
from devsweep.scanners.unified import UnifiedScanner
from devsweep.settings import Settings
from devsweep.utils import remove_path, resolve_home

log = logging.getLogger(__name__)

StreamFactory = Callable[..., ScanStream]

# Rows taken by header, instructions and footer around the item list.
_CHROME_ROWS = 15


class State(Enum):
    MAIN_MENU = "main_menu"
    SCANNING = "scanning"
    SELECT_ITEMS = "select_items"
    DELETING = "deleting"
    DELETION_COMPLETE = "deletion_complete"
    DIRECT_CLEANUP = "direct_cleanup"


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of controller state handed to the renderer."""

    state: State
    options: tuple[MenuOption, ...]
    menu_cursor: int
    menu_selected: frozenset[int]
    scanner: ScannerInfo | None
    items: tuple[Item, ...]
    item_cursor: int
    scroll_offset: int
    visible_rows: int
    progress: ProgressSnapshot
    scan_error: str
    deleting: Path | None
    results: tuple[DeletionResult, ...]
    total_freed: int
    direct_results: tuple[CleanResult, ...]
    min_size_mb: int
    frame: int
    width: int
    height: int

    @property
    def selected_count(self) -> int:
        return sum(1 for i in self.items if i.selected)

    @property
    def selected_size(self) -> int:
        return sum(i.size for i in self.items if i.selected)

    @property
    def freed_overall(self) -> int:
        """Bytes freed by deletions and cache cleanups together."""
        return self.total_freed + sum(r.bytes_freed for r in self.direct_results)


def _tick(interval: float, session: int, frame: int) -> ProgressTick:
    time.sleep(interval)
    return ProgressTick(session=session, frame=frame)


def _resolve_size(scanner: Scanner, path: Path, session: int, cancel: CancelToken) -> SizeResolved:
    try:
        size, count = scanner.measure(path, cancel)
    except ScanCancelled as exc:
        return SizeResolved(session, path, exc.size, exc.file_count, error=str(exc))
    return SizeResolved(session, path, size, count)


def _run_direct(cleanups: tuple[DirectCleanup, ...], home: Path) -> DirectCleanupFinished:
    return DirectCleanupFinished(results=tuple(run_cleanups(cleanups, home)))


class Controller:
    """Owns one interactive session at a time."""

    def __init__(
        self,
        registry: ScannerRegistry,
        root: Path | str | None = None,
        *,
        settings: Settings | None = None,
        home: Path | None = None,
        stream_factory: StreamFactory = ScanStream,
        remover: Remover = remove_path,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = settings or Settings()
        self.home = home or resolve_home()
        self.root = Path(root or settings.get("scan.root") or self.home).expanduser()
        self.options: tuple[MenuOption, ...] = tuple(registry.menu_options())
        self.queue_size = settings.get_int("scan.queue_size")
        self.tick_interval = settings.get_int("progress.tick_ms") / 1000
        self.min_size_mb = settings.get_int("select.min_size_mb")
        self._stream_factory = stream_factory
        self._remover = remover
        self._clock = clock

        self.state = State.MAIN_MENU
        self.quit = False
        self.width = 80
        self.height = 24
        self.frame = 0
        self.menu_cursor = 0
        self.menu_selected: set[int] = set()
        self._session = 0
        self._reset_session()

    # ── session bookkeeping ─────────────────────────────────────────────

    def _reset_session(self) -> None:
        self.scanner: Scanner | None = None
        self.stream: ScanStream | None = None
        self.cancel: CancelToken | None = None
        self.estimator: ProgressEstimator | None = None
        self.progress = ProgressSnapshot()
        self.scan_error = ""
        self.items: list[Item] = []
        self.item_cursor = 0
        self.scroll_offset = 0
        self.run: DeletionRun | None = None
        self.results: tuple[DeletionResult, ...] = ()
        self.total_freed = 0
        self.direct_results: tuple[CleanResult, ...] = ()
        self.pending_scanner: Scanner | None = None
        self._sizing: set[Path] = set()

    def _cancel_scan(self) -> None:
        if self.cancel is not None:
            self.cancel.cancel()

    def _return_to_menu(self) -> list[Command]:
        self._cancel_scan()
        self._session += 1
        self._reset_session()
        self.menu_selected = set()
        self.menu_cursor = 0
        self.state = State.MAIN_MENU
        return []

    def _quit(self) -> list[Command]:
        self._cancel_scan()
        self.quit = True
        return []

    @property
    def session(self) -> int:
        return self._session

    @property
    def visible_rows(self) -> int:
        return max(1, self.height - _CHROME_ROWS)

    @property
    def freed_overall(self) -> int:
        return self.total_freed + sum(r.bytes_freed for r in self.direct_results)

    # ── message dispatch ────────────────────────────────────────────────

    def update(self, msg: Message) -> list[Command]:
        """Apply one message and return the commands it triggers."""
        match msg:
            case KeyPressed(key=key):
                return self._handle_key(key)
            case Resized(width=width, height=height):
                self.width, self.height = width, height
                self._adjust_scroll()
                return []
            case ItemFound():
                return self._on_item_found(msg)
            case ScanComplete():
                return self._on_scan_complete(msg)
            case SizeResolved():
                return self._on_size_resolved(msg)
            case ProgressTick():
                return self._on_tick(msg)
            case ItemDeleted():
                return self._on_item_deleted(msg)
            case DeletionFinished():
                return self._on_deletion_finished(msg)
            case DirectCleanupFinished():
                return self._on_direct_finished(msg)
        log.debug("Ignoring unknown message: %r", msg)
        return []

    def _handle_key(self, key: str) -> list[Command]:
        match self.state:
            case State.MAIN_MENU:
                return self._key_main_menu(key)
            case State.SCANNING:
                return self._key_scanning(key)
            case State.SELECT_ITEMS:
                return self._key_select_items(key)
            case State.DELETING:
                return self._key_deleting(key)
            case State.DELETION_COMPLETE:
                return self._key_deletion_complete(key)
            case State.DIRECT_CLEANUP:
                return self._key_direct_cleanup(key)
        return []

    # ── main menu ───────────────────────────────────────────────────────

    def _key_main_menu(self, key: str) -> list[Command]:
        match key:
            case "up" | "k":
                self.menu_cursor = max(0, self.menu_cursor - 1)
            case "down" | "j":
                self.menu_cursor = min(len(self.options) - 1, self.menu_cursor + 1)
            case " ":
                self.menu_selected ^= {self.menu_cursor}
            case "enter":
                return self._confirm_menu()
            case "q" | "ctrl+c":
                return self._quit()
        return []

    def _confirm_menu(self) -> list[Command]:
        if not self.options:
            return []
        chosen = [self.options[i] for i in sorted(self.menu_selected)]
        if not chosen:
            chosen = [self.options[self.menu_cursor]]

        scanners = [o.scanner for o in chosen if o.scanner is not None]
        cleanups = tuple(o.cleanup for o in chosen if o.cleanup is not None)
        self.pending_scanner = _combine(scanners) if scanners else None

        if cleanups:
            log.info("Running direct cleanups: %s", ", ".join(c.id for c in cleanups))
            self.state = State.DIRECT_CLEANUP
            return [partial(_run_direct, cleanups, self.home)]
        if self.pending_scanner is not None:
            return self._start_scan(self.pending_scanner)
        return []

    # ── scanning ────────────────────────────────────────────────────────

    def _start_scan(self, scanner: Scanner) -> list[Command]:
        self._cancel_scan()
        self._session += 1
        self.pending_scanner = None
        self.scanner = scanner
        self.items = []
        self._sizing = set()
        self.scan_error = ""
        self.item_cursor = 0
        self.scroll_offset = 0
        self.cancel = CancelToken()
        self.stream = self._stream_factory(
            scanner, self.root, self.cancel, session=self._session, capacity=self.queue_size
        ).start()
        self.estimator = ProgressEstimator(self.root, self.home, clock=self._clock)
        self.progress = self._measure_progress()
        self.state = State.SCANNING
        log.info("Scanning %s with %s (session %d)", self.root, scanner.id, self._session)
        return [self.stream.pull, self._tick_command()]

    def _tick_command(self) -> Command:
        return partial(_tick, self.tick_interval, self._session, self.frame + 1)

    def _measure_progress(self) -> ProgressSnapshot:
        if self.estimator is None or self.stream is None or self.scanner is None:
            return self.progress
        if self.scanner.reports_progress:
            return self.estimator.observe(self.stream.counters)
        return self.estimator.interpolate(
            items_found=len(self.items),
            total_size=sum(i.size for i in self.items),
        )

    def _key_scanning(self, key: str) -> list[Command]:
        match key:
            case "c" | "esc":
                self._cancel_scan()
            case "q" | "ctrl+c":
                return self._quit()
        return []

    def _on_tick(self, msg: ProgressTick) -> list[Command]:
        if msg.session != self._session or self.state is not State.SCANNING:
            return []
        self.frame = msg.frame
        self.progress = self._measure_progress()
        return [self._tick_command()]

    def _on_item_found(self, msg: ItemFound) -> list[Command]:
        if msg.session != self._session or self.state is not State.SCANNING or self.stream is None:
            return []
        self._add_or_update(msg.item)
        commands: list[Command] = [self.stream.pull]
        if msg.item.size == 0 and msg.item.path not in self._sizing and self.scanner and self.cancel:
            self._sizing.add(msg.item.path)
            commands.append(partial(_resolve_size, self.scanner, msg.item.path, self._session, self.cancel))
        return commands

    def _add_or_update(self, item: Item) -> None:
        for index, existing in enumerate(self.items):
            if existing.path == item.path:
                self.items[index] = item
                return
        self.items.append(item)

    def _on_scan_complete(self, msg: ScanComplete) -> list[Command]:
        if msg.session != self._session or self.state is not State.SCANNING:
            return []
        known = {i.path for i in self.items}
        self.items.extend(i for i in msg.items if i.path not in known)

        if isinstance(msg.error, ScanCancelled):
            self.scan_error = "Scan cancelled"
        elif msg.error is not None:
            self.scan_error = f"Scan failed: {msg.error}"
        self.progress = self._measure_progress()
        self.state = State.SELECT_ITEMS
        self.item_cursor = 0
        self.scroll_offset = 0
        log.info("Scan finished with %d items%s", len(self.items), f" ({self.scan_error})" if self.scan_error else "")
        return []

    def _on_size_resolved(self, msg: SizeResolved) -> list[Command]:
        # Sizes are frozen once the deletion snapshot is taken.
        if msg.session != self._session or self.state not in (State.SCANNING, State.SELECT_ITEMS):
            return []
        if msg.error:
            log.debug("Size of %s not resolved: %s", msg.path, msg.error)
            return []
        for item in self.items:
            if item.path == msg.path:
                item.size = msg.size
                item.item_count = msg.file_count
                break
        return []

    # ── selection ───────────────────────────────────────────────────────

    def _key_select_items(self, key: str) -> list[Command]:
        match key:
            case "up" | "k":
                self._move_item_cursor(-1)
            case "down" | "j":
                self._move_item_cursor(1)
            case " ":
                if self.item_cursor < len(self.items):
                    item = self.items[self.item_cursor]
                    item.selected = not item.selected
            case "a":
                for item in self.items:
                    item.selected = True
            case "n":
                for item in self.items:
                    item.selected = False
            case "s":
                self.sort_items("size")
            case "d":
                self.sort_items("date")
            case "p":
                self.sort_items("path")
            case "f":
                self.filter_min_size(self.min_size_mb)
            case "enter":
                return self._start_deletion()
            case "r":
                return self._return_to_menu()
            case "q" | "ctrl+c":
                return self._quit()
        return []

    def _move_item_cursor(self, delta: int) -> None:
        if not self.items:
            return
        self.item_cursor = min(len(self.items) - 1, max(0, self.item_cursor + delta))
        self._adjust_scroll()

    def _adjust_scroll(self) -> None:
        rows = self.visible_rows
        if self.item_cursor < self.scroll_offset:
            self.scroll_offset = self.item_cursor
        elif self.item_cursor >= self.scroll_offset + rows:
            self.scroll_offset = self.item_cursor - rows + 1

    def sort_items(self, by: str) -> None:
        """Sort by 'size' (largest first), 'date' (newest first) or 'path'."""
        match by:
            case "size":
                self.items.sort(key=lambda i: i.size, reverse=True)
            case "date":
                self.items.sort(key=lambda i: i.last_modified or datetime.min, reverse=True)
            case "path":
                self.items.sort(key=lambda i: str(i.path))
            case _:
                raise ValueError(f"Unknown sort key: {by}")

    def filter_min_size(self, min_size_mb: int) -> None:
        """Drop items smaller than *min_size_mb* from the working set."""
        min_size = min_size_mb * 1024 * 1024
        self.items = [i for i in self.items if i.size >= min_size]
        self.item_cursor = 0
        self.scroll_offset = 0

    # ── deletion ────────────────────────────────────────────────────────

    def _start_deletion(self) -> list[Command]:
        if not any(i.selected for i in self.items):
            return []
        self.run = DeletionRun.from_selection(self.items)
        self.results = ()
        self.total_freed = 0
        self.state = State.DELETING
        log.info("Deleting %d items", len(self.run.items))
        return self._next_deletion()

    def _next_deletion(self) -> list[Command]:
        assert self.run is not None
        item = self.run.next_item()
        if item is None:
            finished = self.run.finished_message()
            return [lambda: finished]
        return [partial(delete_item, item.path, self._remover)]

    def _on_item_deleted(self, msg: ItemDeleted) -> list[Command]:
        if self.state is not State.DELETING or self.run is None:
            return []
        current = self.run.current
        if current is None or current.path != msg.path:
            log.warning("Unexpected deletion result for %s", msg.path)
            return []
        self.run.record(current, msg.success, msg.error)
        self.results = self.run.results
        self.total_freed = self.run.total_freed
        return self._next_deletion()

    def _on_deletion_finished(self, msg: DeletionFinished) -> list[Command]:
        if self.state is not State.DELETING:
            return []
        self.results = msg.results
        self.total_freed = msg.total_freed
        self.state = State.DELETION_COMPLETE
        log.info("Deletion finished: %d results, %d bytes freed", len(msg.results), msg.total_freed)
        return []

    def _key_deleting(self, key: str) -> list[Command]:
        # Deletion has no cancellation: quitting leaves the current item's removal to finish or fail.
        match key:
            case "up" | "k":
                self._move_item_cursor(-1)
            case "down" | "j":
                self._move_item_cursor(1)
            case "q" | "ctrl+c":
                return self._quit()
        return []

    # ── completion / direct cleanup ─────────────────────────────────────

    def _key_deletion_complete(self, key: str) -> list[Command]:
        match key:
            case "r":
                return self._return_to_menu()
            case "q" | "ctrl+c" | "enter":
                return self._quit()
        return []

    def _key_direct_cleanup(self, key: str) -> list[Command]:
        if key in ("q", "ctrl+c"):
            return self._quit()
        return []

    def _on_direct_finished(self, msg: DirectCleanupFinished) -> list[Command]:
        if self.state is not State.DIRECT_CLEANUP:
            return []
        self.direct_results = msg.results
        if self.pending_scanner is not None:
            return self._start_scan(self.pending_scanner)
        self.state = State.DELETION_COMPLETE
        return []

    # ── rendering support ───────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        return Snapshot(
            state=self.state,
            options=self.options,
            menu_cursor=self.menu_cursor,
            menu_selected=frozenset(self.menu_selected),
            scanner=self.scanner.identify() if self.scanner else None,
            items=tuple(replace(i) for i in self.items),
            item_cursor=self.item_cursor,
            scroll_offset=self.scroll_offset,
            visible_rows=self.visible_rows,
            progress=self.progress,
            scan_error=self.scan_error,
            deleting=self.run.current.path if self.run and self.run.current else None,
            results=self.results,
            total_freed=self.total_freed,
            direct_results=self.direct_results,
            min_size_mb=self.min_size_mb,
            frame=self.frame,
            width=self.width,
            height=self.height,
        )


def _combine(scanners: Sequence[Scanner]) -> Scanner:
    """Fold several selected scanners into one walk."""
    flat: dict[str, Scanner] = {}
    for scanner in scanners:
        parts = scanner.scanners if isinstance(scanner, UnifiedScanner) else (scanner,)
        for part in parts:
            flat.setdefault(part.id, part)
    if len(flat) == 1:
        return next(iter(flat.values()))
    if len(scanners) == 1:
        return scanners[0]
    return UnifiedScanner(list(flat.values()))
