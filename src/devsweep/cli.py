"""CLI interface for devsweep."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from devsweep.core.cancel import CancelToken
from devsweep.core.deletion import DeletionRun
from devsweep.core.direct import run_cleanup
from devsweep.core.registry import ScannerRegistry
from devsweep.core.scanner_loader import load_scanners
from devsweep.models.item import DeletionResult, Item
from devsweep.models.scanner import Scanner
from devsweep.settings import Settings
from devsweep.utils import bytes_to_human, resolve_home


def _setup_logging(verbosity: int, log_file: Path | None = None, *, to_stderr: bool = True) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    fmt = "%(levelname)s: %(message)s"
    if log_file is not None:
        logging.basicConfig(level=level, filename=log_file, format="%(asctime)s %(name)s " + fmt)
    elif to_stderr:
        logging.basicConfig(level=level, format=fmt)
    else:
        # Full-screen mode: anything on stderr would tear the display.
        logging.basicConfig(level=level, handlers=[logging.NullHandler()])


def _build_registry(settings: Settings) -> ScannerRegistry:
    registry = ScannerRegistry()
    load_scanners(registry, settings.get("scanners.paths") or [])
    return registry


def _scan_root(settings: Settings, path: Path | None) -> Path:
    return Path(path or settings.get("scan.root") or resolve_home()).expanduser()


def _resolve_scanner(registry: ScannerRegistry, ids: list[str]) -> Scanner:
    # "unified" stands for every registered scanner.
    if "unified" in ids:
        ids = []
    unknown = [i for i in ids if i not in registry]
    if unknown:
        click.echo(f"Unknown scanner(s): {', '.join(unknown)}", err=True)
        sys.exit(1)
    return registry.unified(ids or None)


def _item_to_dict(item: Item) -> dict:
    return {
        "path": str(item.path),
        "kind": item.kind,
        "size_bytes": item.size,
        "file_count": item.item_count,
        "last_modified": item.last_modified.isoformat() if item.last_modified else None,
        "project": str(item.project_context) if item.project_context else None,
    }


def _result_to_dict(result: DeletionResult) -> dict:
    return {
        "path": str(result.path),
        "size_bytes": result.size,
        "success": result.success,
        "error": result.error,
    }


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write logs to this file")
@click.option("--config", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Settings file to use")
@click.pass_context
def main(ctx: click.Context, verbose: int, log_file: Path | None, config: Path | None) -> None:
    """devsweep: find and remove dependency and build artifacts."""
    interactive_mode = ctx.invoked_subcommand in (None, "interactive")
    _setup_logging(verbose, log_file, to_stderr=not interactive_mode)
    ctx.obj = Settings(config)
    if ctx.invoked_subcommand is None:
        ctx.invoke(interactive)


# ── interactive ──────────────────────────────────────────────────────────

@main.command()
@click.option("--path", "path", type=click.Path(file_okay=False, path_type=Path), default=None, help="Directory to scan")
@click.pass_obj
def interactive(settings: Settings, path: Path | None) -> None:
    """Full-screen menu → scan → select → delete flow."""
    from devsweep.app import App
    from devsweep.core.controller import Controller

    if not sys.stdin.isatty():
        click.echo("Interactive mode needs a terminal; see 'devsweep --help' for batch commands.", err=True)
        sys.exit(1)

    controller = Controller(_build_registry(settings), _scan_root(settings, path), settings=settings)
    App(controller).run()
    click.clear()
    if controller.freed_overall:
        click.echo(f"Freed {click.style(bytes_to_human(controller.freed_overall), fg='green', bold=True)}")


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_cmd(settings: Settings, as_json: bool) -> None:
    """List available scanners and cache cleanups."""
    registry = _build_registry(settings)
    scanners = registry.get_all()
    cleanups = registry.get_cleanups()

    if as_json:
        data = [
            {"id": s.id, "name": s.name, "description": s.description, "kind": "scanner"}
            for s in scanners
        ] + [
            {"id": c.id, "name": c.name, "description": c.description, "kind": "cleanup"}
            for c in cleanups
        ]
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n  {click.style('Scanners', fg='blue', bold=True)}")
    for scanner in scanners:
        click.echo(f"    {click.style(scanner.id, fg='cyan', bold=True):30s}  {scanner.icon} {scanner.name}")
        click.echo(f"      {scanner.description}")

    click.echo(f"\n  {click.style('Cache cleanups', fg='blue', bold=True)}")
    for cleanup in cleanups:
        click.echo(f"    {click.style(cleanup.id, fg='cyan', bold=True):30s}  {cleanup.icon} {cleanup.name}")
        click.echo(f"      {cleanup.description}")
    click.echo()


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("scanner_ids", nargs=-1)
@click.option("--path", "path", type=click.Path(file_okay=False, path_type=Path), default=None, help="Directory to scan")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def scan(settings: Settings, scanner_ids: tuple[str, ...], path: Path | None, as_json: bool) -> None:
    """Find artifacts (preview only, never deletes)."""
    registry = _build_registry(settings)
    scanner = _resolve_scanner(registry, list(scanner_ids))
    root = _scan_root(settings, path)

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning {root} for {scanner.name}...\n")

    result = scanner.collect(CancelToken(), root)
    items = sorted(result.items, key=lambda i: i.size, reverse=True)

    if as_json:
        data = {
            "scanner_id": result.scanner_id,
            "root": str(root),
            "total_bytes": result.total_size,
            "items": [_item_to_dict(i) for i in items],
        }
        click.echo(json.dumps(data, indent=2))
        return

    if not items:
        click.echo("Nothing found.")
        return

    for item in items:
        click.echo(
            f"  {click.style(bytes_to_human(item.size), fg='green', bold=True):>20s}  "
            f"{click.style(item.kind, fg='cyan'):24s} {item.path}"
        )
    click.echo(
        f"\nTotal reclaimable: {click.style(bytes_to_human(result.total_size), fg='green', bold=True)} "
        f"in {len(items):,} items\n"
    )


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("target_id")
@click.option("--path", "path", type=click.Path(file_okay=False, path_type=Path), default=None, help="Directory to scan")
@click.option("--min-size", type=click.IntRange(min=0), default=0, help="Only delete items of at least this many MB")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def clean(
    settings: Settings,
    target_id: str,
    path: Path | None,
    min_size: int,
    yes: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Delete everything a scanner finds, or run a cache cleanup.

    TARGET_ID is a scanner id, 'unified' for all scanners, or a cache
    cleanup id from 'devsweep list'.
    """
    registry = _build_registry(settings)

    if (cleanup := registry.get_cleanup(target_id)) is not None:
        if dry_run:
            click.echo(f"Would run: {cleanup.name}")
            return
        if not yes and not as_json and not click.confirm(f"{cleanup.name}?", default=False):
            click.echo("Aborted.")
            return
        result = run_cleanup(cleanup)
        if as_json:
            click.echo(json.dumps({
                "cleanup_id": result.cleanup_id,
                "success": result.success,
                "bytes_freed": result.bytes_freed,
                "error": result.error,
            }, indent=2))
        elif result.success:
            click.echo(f"  {click.style('✓', fg='green')} {result.description}")
        else:
            click.echo(f"  {click.style('✗', fg='red')} {result.description}: {result.error}")
        if not result.success:
            sys.exit(1)
        return

    scanner = _resolve_scanner(registry, [target_id])
    root = _scan_root(settings, path)
    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning {root} for {scanner.name}...\n")

    found = scanner.collect(CancelToken(), root)
    threshold = min_size * 1024 * 1024
    items = [i for i in found.items if i.size >= threshold]

    if not items:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "results": []}))
        else:
            click.echo("Nothing to clean.")
        return

    total = sum(i.size for i in items)
    if not as_json:
        for item in items:
            click.echo(f"  {bytes_to_human(item.size):>10s}  {item.path}")
        click.echo(f"\nTotal: {click.style(bytes_to_human(total), fg='green', bold=True)} in {len(items):,} items\n")

    if dry_run:
        if as_json:
            data = {"status": "dry_run", "would_free_bytes": total, "items": [_item_to_dict(i) for i in items]}
            click.echo(json.dumps(data, indent=2))
        else:
            click.echo("(dry run, nothing was deleted)")
        return

    if not yes and not as_json and not click.confirm(f"Delete {len(items)} items?", default=False):
        click.echo("Aborted.")
        return

    for item in items:
        item.selected = True

    def on_result(result: DeletionResult) -> None:
        if as_json:
            return
        if result.success:
            click.echo(f"  {click.style('✓', fg='green')} {result.path}")
        else:
            click.echo(f"  {click.style('✗', fg='red')} {result.path}: {result.error}")

    finished = DeletionRun.from_selection(items).run_all(on_result=on_result)

    if as_json:
        data = {
            "status": "cleaned",
            "total_freed": finished.total_freed,
            "results": [_result_to_dict(r) for r in finished.results],
        }
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(f"\nTotal freed: {click.style(bytes_to_human(finished.total_freed), fg='green', bold=True)}\n")

    if any(not r.success for r in finished.results):
        sys.exit(1)
