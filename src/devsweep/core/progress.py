"""Scan progress estimation.

The directory total of a walk is unknown until it ends, so the total used
for the percentage is a heuristic picked from a zone table.  It is never
used to decide that a scan has finished.
"""

from __future__ import annotations

import math
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from devsweep.core.walker import WalkCounters

ZONE_HOME = "Home"
ZONE_PROJECTS = "Projects"
ZONE_DOCUMENTS = "Documents"
ZONE_DOWNLOADS = "Downloads"
ZONE_OTHER = "Other"
ZONE_UNKNOWN = "Unknown"

PRECISION_MEASURED = "measured"
PRECISION_ESTIMATED = "estimated"

DEV_PATTERNS = (
    "projects", "code", "development", "dev", "workspace", "repos", "repositories",
    "src", "source", "github", "gitlab", "bitbucket",
)

DEFAULT_ESTIMATE = 5000
BASE_SPEED = 800.0  # directories per second
SPEED_SMOOTHING = 0.8

# zone -> ((max_depth, estimate), ...); the last row catches everything deeper.
_ESTIMATES: dict[str, tuple[tuple[int, int], ...]] = {
    ZONE_PROJECTS: ((2, 3000), (4, 1500), (math.inf, 500)),
    ZONE_DOCUMENTS: ((2, 5000), (4, 2000), (math.inf, 800)),
    ZONE_DOWNLOADS: ((math.inf, 2000),),
    ZONE_HOME: ((math.inf, 15000),),
    ZONE_OTHER: ((2, 3000), (4, 1500), (math.inf, 500)),
}


def _home_or_none() -> Path | None:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def determine_zone(root: Path | str, home: Path | None) -> str:
    """Coarse classification of a scan root."""
    if home is None:
        return ZONE_UNKNOWN
    root_str = os.fspath(root)
    if root_str == os.fspath(home):
        return ZONE_HOME

    lowered = root_str.lower()
    if any(pattern in lowered for pattern in DEV_PATTERNS):
        return ZONE_PROJECTS
    if "documents" in lowered or "desktop" in lowered:
        return ZONE_DOCUMENTS
    if "downloads" in lowered:
        return ZONE_DOWNLOADS
    return ZONE_OTHER


def estimate_total(root: Path | str, zone: str, home: Path | None) -> int:
    """Expected number of directories under *root*; deeper roots get less."""
    if home is None:
        return DEFAULT_ESTIMATE

    root_str = os.fspath(root)
    home_str = os.fspath(home)
    relative = root_str[len(home_str):] if root_str.startswith(home_str) else root_str
    depth = relative.count(os.sep)

    for max_depth, estimate in _ESTIMATES.get(zone, ((math.inf, 2000),)):
        if depth <= max_depth:
            return estimate
    return 2000


@dataclass(frozen=True)
class ProgressSnapshot:
    """Immutable view of scan progress for the renderer."""

    directories_scanned: int = 0
    estimated_total: int = DEFAULT_ESTIMATE
    items_found: int = 0
    total_size: int = 0
    speed: float = 0.0
    elapsed: float = 0.0
    current_path: str = ""
    zone: str = ZONE_OTHER
    precision: str = PRECISION_ESTIMATED

    @property
    def percent(self) -> float:
        if self.estimated_total <= 0:
            return 0.0
        return min(1.0, max(0.0, self.directories_scanned / self.estimated_total))

    @property
    def eta_seconds(self) -> float | None:
        if self.speed <= 0 or self.estimated_total <= 0:
            return None
        return max(0, self.estimated_total - self.directories_scanned) / self.speed


class ProgressEstimator:
    """Produces a smoothed, monotonic progress signal for one scan session.

    ``observe`` is used when the walk exposes live counters; ``interpolate``
    synthesizes a plausible signal from elapsed time when it does not, and
    marks its snapshots as estimated.
    """

    def __init__(
        self,
        root: Path | str,
        home: Path | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if home is None:
            home = _home_or_none()
        self.root = Path(root)
        self.zone = determine_zone(root, home)
        self.estimated_total = estimate_total(root, self.zone, home)
        self._clock = clock
        self.started_at = clock()
        self.speed = 0.0
        self.directories_scanned = 0
        self._last_time = self.started_at
        self._last_count = 0

    def observe(self, counters: WalkCounters, now: float | None = None) -> ProgressSnapshot:
        """Progress from real walk counters."""
        now = self._clock() if now is None else now
        count = max(self.directories_scanned, counters.directories_scanned)
        dt = now - self._last_time
        if dt > 0:
            self._smooth((count - self._last_count) / dt)
            self._last_time = now
            self._last_count = count
        self.directories_scanned = count
        return self._snapshot(
            now,
            PRECISION_MEASURED,
            items_found=counters.items_found,
            total_size=counters.total_size,
            current_path=counters.current_path,
        )

    def interpolate(
        self,
        now: float | None = None,
        *,
        items_found: int = 0,
        total_size: int = 0,
    ) -> ProgressSnapshot:
        """Time-based progress for walks that report nothing until they end.

        Speed oscillates gently around ``BASE_SPEED``; the directory count
        never decreases and never exceeds the estimated total.
        """
        now = self._clock() if now is None else now
        elapsed = max(0.0, now - self.started_at)
        self._smooth(BASE_SPEED * (1.0 + 0.05 * math.sin(elapsed * 0.5)))
        count = int(elapsed * self.speed)
        self.directories_scanned = min(max(self.directories_scanned, count), self.estimated_total)
        return self._snapshot(
            now,
            PRECISION_ESTIMATED,
            items_found=items_found,
            total_size=total_size,
            current_path=str(self.root),
        )

    def _smooth(self, instantaneous: float) -> None:
        if self.speed == 0:
            self.speed = instantaneous
        else:
            self.speed = SPEED_SMOOTHING * self.speed + (1 - SPEED_SMOOTHING) * instantaneous

    def _snapshot(self, now: float, precision: str, **fields) -> ProgressSnapshot:
        return ProgressSnapshot(
            directories_scanned=self.directories_scanned,
            estimated_total=self.estimated_total,
            speed=self.speed,
            elapsed=max(0.0, now - self.started_at),
            zone=self.zone,
            precision=precision,
            **fields,
        )
