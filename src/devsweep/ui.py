"""Text rendering of controller snapshots."""

from __future__ import annotations

from datetime import datetime

import click

from devsweep.core.controller import Snapshot, State
from devsweep.core.progress import PRECISION_ESTIMATED
from devsweep.models.item import DeletionState, Item
from devsweep.utils import bytes_to_human, format_duration, format_elapsed

SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
BAR_WIDTH = 40

_STATE_MARKS = {
    DeletionState.PENDING: click.style("·", fg="bright_black"),
    DeletionState.DELETED: click.style("✓", fg="green"),
    DeletionState.FAILED: click.style("✗", fg="red"),
}


def render(snapshot: Snapshot, now: datetime | None = None) -> str:
    """Render one full screen for *snapshot*."""
    match snapshot.state:
        case State.MAIN_MENU:
            lines = _main_menu(snapshot)
        case State.SCANNING:
            lines = _scanning(snapshot)
        case State.SELECT_ITEMS:
            lines = _select_items(snapshot, now or datetime.now())
        case State.DELETING:
            lines = _deleting(snapshot)
        case State.DELETION_COMPLETE:
            lines = _complete(snapshot)
        case State.DIRECT_CLEANUP:
            lines = _direct_cleanup(snapshot)
        case _:
            lines = []
    return "\n".join(lines) + "\n"


def _title(text: str) -> str:
    return click.style(text, fg="cyan", bold=True)


def _hint(text: str) -> str:
    return click.style(text, fg="bright_black")


def truncate(text: str, width: int) -> str:
    """Shorten *text* from the left so the tail (usually a path) stays readable."""
    if width <= 1 or len(text) <= width:
        return text
    return "…" + text[-(width - 1):]


def progress_bar(fraction: float, width: int = BAR_WIDTH) -> str:
    filled = int(round(max(0.0, min(1.0, fraction)) * width))
    return "█" * filled + "░" * (width - filled)


def age(moment: datetime | None, now: datetime) -> str:
    if moment is None:
        return "unknown"
    days = (now - moment).days
    if days < 1:
        return "today"
    if days < 30:
        return f"{days}d ago"
    if days < 365:
        return f"{days // 30}mo ago"
    return f"{days // 365}y ago"


# ── screens ─────────────────────────────────────────────────────────────

def _main_menu(s: Snapshot) -> list[str]:
    lines = [_title("🧹 devsweep"), "", "What would you like to clean?", ""]
    for index, option in enumerate(s.options):
        cursor = click.style(">", fg="cyan", bold=True) if index == s.menu_cursor else " "
        checked = "[x]" if index in s.menu_selected else "[ ]"
        name = click.style(option.name, bold=True) if index == s.menu_cursor else option.name
        lines.append(f"{cursor} {checked} {option.icon} {name}")
        lines.append(f"        {_hint(truncate(option.description, max(10, s.width - 8)))}")
    lines += ["", _hint("↑/↓ move · space toggle · enter confirm · q quit")]
    return lines


def _scanning(s: Snapshot) -> list[str]:
    p = s.progress
    spinner = SPINNER[s.frame % len(SPINNER)]
    name = s.scanner.name if s.scanner else "artifacts"
    precision = " (estimated)" if p.precision == PRECISION_ESTIMATED else ""
    eta = p.eta_seconds

    lines = [
        _title(f"{spinner} Scanning: {name}"),
        "",
        f"{progress_bar(p.percent)} {p.percent * 100:3.0f}%{precision}",
        "",
        f"  Directories: {p.directories_scanned:,} / ~{p.estimated_total:,} ({p.zone})",
        f"  Found:       {p.items_found:,} items, {bytes_to_human(p.total_size)}",
        f"  Speed:       {p.speed:,.0f} dirs/s",
        f"  Elapsed:     {format_elapsed(p.elapsed)}",
    ]
    if eta is not None and p.percent < 1.0:
        lines.append(f"  Remaining:   ~{format_duration(eta)}")
    if p.current_path:
        lines.append(f"  Current:     {_hint(truncate(p.current_path, max(10, s.width - 15)))}")
    lines += ["", _hint("c stop and review results · q quit")]
    return lines


def _item_line(item: Item, s: Snapshot, index: int, now: datetime) -> str:
    cursor = click.style(">", fg="cyan", bold=True) if index == s.item_cursor else " "
    if item.deletion_state in _STATE_MARKS:
        mark = _STATE_MARKS[item.deletion_state]
    elif item.deletion_state is DeletionState.IN_PROGRESS:
        mark = click.style(SPINNER[s.frame % len(SPINNER)], fg="yellow")
    else:
        mark = "[x]" if item.selected else "[ ]"
    size = bytes_to_human(item.size) if item.size else "…"
    prefix = f"{cursor} {mark} {size:>10s}  {age(item.last_modified, now):>9s}  "
    return prefix + truncate(str(item.path), max(10, s.width - len(click.unstyle(prefix))))


def _visible(s: Snapshot) -> range:
    return range(s.scroll_offset, min(len(s.items), s.scroll_offset + s.visible_rows))


def _select_items(s: Snapshot, now: datetime) -> list[str]:
    total = sum(i.size for i in s.items)
    lines = [
        _title(f"Found {len(s.items):,} items ({bytes_to_human(total)})"),
        f"Selected: {s.selected_count:,} ({click.style(bytes_to_human(s.selected_size), fg='green', bold=True)})",
    ]
    if s.scan_error:
        lines.append(click.style(s.scan_error + ", showing partial results", fg="yellow"))
    lines.append("")

    if not s.items:
        lines.append("  Nothing found.")
    for index in _visible(s):
        lines.append(_item_line(s.items[index], s, index, now))
    if len(s.items) > s.visible_rows:
        lines.append(_hint(f"  {s.scroll_offset + 1}-{_visible(s).stop} of {len(s.items)}"))

    lines += [
        "",
        _hint("space toggle · a all · n none · s size · d date · p path"),
        _hint(f"f drop < {s.min_size_mb} MB · enter delete selected · r menu · q quit"),
    ]
    return lines


def _deleting(s: Snapshot) -> list[str]:
    in_run = [i for i in s.items if i.deletion_state is not DeletionState.UNSET]
    lines = [_title(f"🗑  Deleting {len(s.results)}/{len(in_run)}"), ""]
    if s.deleting is not None:
        lines.append(f"  {_hint(truncate(str(s.deleting), max(10, s.width - 2)))}")
        lines.append("")
    now = datetime.now()
    for index, item in enumerate(s.items):
        if item.deletion_state is not DeletionState.UNSET:
            lines.append(_item_line(item, s, index, now))
    lines += ["", f"Freed so far: {click.style(bytes_to_human(s.total_freed), fg='green', bold=True)}"]
    return lines


def _direct_cleanup(s: Snapshot) -> list[str]:
    return [_title("Running cache cleanups…"), "", _hint("q quit")]


def _complete(s: Snapshot) -> list[str]:
    lines = [_title("✨ Cleanup complete"), ""]

    if s.direct_results:
        lines.append(click.style("Cache cleanups", bold=True))
        for result in s.direct_results:
            mark = click.style("✓", fg="green") if result.success else click.style("✗", fg="red")
            lines.append(f"  {mark} {result.description}")
            if result.error:
                lines.append(f"      {click.style(result.error, fg='red')}")
        lines.append("")

    if s.results:
        lines.append(click.style("Deleted items", bold=True))
        for result in s.results:
            if result.success:
                lines.append(f"  {click.style('✓', fg='green')} {bytes_to_human(result.size):>10s}  {result.path}")
            else:
                lines.append(f"  {click.style('✗', fg='red')} {'':>10s}  {result.path}")
                lines.append(f"      {click.style(result.error, fg='red')}")
        failed = sum(1 for r in s.results if not r.success)
        if failed:
            lines.append(click.style(f"  {failed} item(s) could not be deleted", fg="yellow"))
        lines.append("")

    lines += [
        f"Total freed: {click.style(bytes_to_human(s.freed_overall), fg='green', bold=True)}",
        "",
        _hint("r back to menu · q quit"),
    ]
    return lines
