"""Shared utility functions."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from devsweep.core.cancel import CancelToken, ScanCancelled

log = logging.getLogger(__name__)


def has_command(name: str) -> bool:
    """Check if a command exists on the system."""
    return shutil.which(name) is not None


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", resolve_home() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", resolve_home() / ".local" / "share"))


def resolve_home() -> Path:
    """Return the user's home directory, or ``/`` when it cannot be determined."""
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        log.warning("Cannot resolve home directory, falling back to /")
        return Path("/")


def remove_path(path: Path | str) -> None:
    """Remove a file or directory tree.

    The path is stat'ed first so that a vanished or inaccessible target
    surfaces as ``FileNotFoundError``/``PermissionError`` instead of being
    silently ignored.  Nothing is rolled back if removal fails halfway.
    """
    target = Path(path)
    os.lstat(target)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


def dir_info(path: Path | str, cancel: CancelToken | None = None) -> tuple[int, int]:
    """Calculate total size and file count of a directory tree.

    Without a cancel token, GNU ``find`` (C-speed walk) is used when
    available, falling back to ``os.scandir``.  With a token the walk always
    runs in Python so the token can be checked between directories; if it
    fires, ``ScanCancelled`` is raised carrying the partial totals.

    Returns:
        (total_bytes, file_count) tuple.
    """
    if cancel is not None:
        return _dir_info_scandir(path, cancel)
    try:
        return _dir_info_find(str(path))
    except Exception:
        return _dir_info_scandir(path)


def _dir_info_find(path_str: str) -> tuple[int, int]:
    """Walk a directory tree using GNU find (pure C, no Python per-file overhead)."""
    proc = subprocess.run(
        ["find", path_str, "-type", "f", "-printf", "%s\n"],
        capture_output=True, timeout=60,
    )
    total = count = 0
    for line in proc.stdout.split(b"\n"):
        if line:
            total += int(line)
            count += 1
    return total, count


def _dir_info_scandir(path: Path | str, cancel: CancelToken | None = None) -> tuple[int, int]:
    """Walk a directory tree using os.scandir (pure Python fallback)."""
    total = 0
    count = 0
    stack: list[Path | str] = [path]
    while stack:
        if cancel is not None and cancel.cancelled:
            raise ScanCancelled("size calculation cancelled", size=total, file_count=count)
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                            count += 1
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                    except OSError:
                        pass
        except OSError:
            log.debug("Cannot read directory: %s", current)
    return total, count


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def format_duration(seconds: float) -> str:
    """Format a remaining-time estimate ('42s', '3m 5s', '1h 20m')."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    minutes = int(seconds) // 60
    secs = int(seconds) % 60
    if minutes < 60:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h {minutes % 60}m"
    return "∞"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
