"""Tests for zone classification and progress estimation."""

from __future__ import annotations

from pathlib import Path

import pytest

from devsweep.core.progress import (
    BASE_SPEED,
    DEFAULT_ESTIMATE,
    PRECISION_ESTIMATED,
    PRECISION_MEASURED,
    ZONE_DOCUMENTS,
    ZONE_DOWNLOADS,
    ZONE_HOME,
    ZONE_OTHER,
    ZONE_PROJECTS,
    ZONE_UNKNOWN,
    ProgressEstimator,
    ProgressSnapshot,
    determine_zone,
    estimate_total,
)
from devsweep.core.walker import WalkCounters

HOME = Path("/home/alice")


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestZones:
    @pytest.mark.parametrize(
        "root, zone",
        [
            ("/home/alice", ZONE_HOME),
            ("/home/alice/Projects", ZONE_PROJECTS),
            ("/home/alice/work/github/app", ZONE_PROJECTS),
            ("/home/alice/Documents/notes", ZONE_DOCUMENTS),
            ("/home/alice/Desktop", ZONE_DOCUMENTS),
            ("/home/alice/Downloads", ZONE_DOWNLOADS),
            ("/mnt/backup", ZONE_OTHER),
        ],
    )
    def test_determine_zone(self, root, zone):
        assert determine_zone(Path(root), HOME) == zone

    def test_unknown_without_home(self):
        assert determine_zone(Path("/anything"), None) == ZONE_UNKNOWN

    @pytest.mark.parametrize(
        "root, zone, expected",
        [
            ("/home/alice", ZONE_HOME, 15000),
            ("/home/alice/Projects", ZONE_PROJECTS, 3000),
            ("/home/alice/Projects/a/b/c", ZONE_PROJECTS, 1500),
            ("/home/alice/Projects/a/b/c/d/e", ZONE_PROJECTS, 500),
            ("/home/alice/Documents", ZONE_DOCUMENTS, 5000),
            ("/home/alice/Documents/a/b/c/d/e", ZONE_DOCUMENTS, 800),
            ("/home/alice/Downloads/x/y/z", ZONE_DOWNLOADS, 2000),
        ],
    )
    def test_estimate_shrinks_with_depth(self, root, zone, expected):
        assert estimate_total(Path(root), zone, HOME) == expected

    def test_default_estimate_without_home(self):
        assert estimate_total(Path("/x"), ZONE_UNKNOWN, None) == DEFAULT_ESTIMATE


class TestSnapshot:
    def test_percent_is_clamped(self):
        assert ProgressSnapshot(directories_scanned=10, estimated_total=5).percent == 1.0
        assert ProgressSnapshot(directories_scanned=0, estimated_total=0).percent == 0.0

    def test_eta(self):
        snap = ProgressSnapshot(directories_scanned=100, estimated_total=500, speed=100.0)
        assert snap.eta_seconds == pytest.approx(4.0)
        assert ProgressSnapshot().eta_seconds is None


class TestObservedProgress:
    def test_uses_real_counters(self):
        clock = FakeClock()
        est = ProgressEstimator(HOME / "Projects", HOME, clock=clock)
        counters = WalkCounters(directories_scanned=200, items_found=3, total_size=999, current_path="/x")

        clock.now += 1.0
        snap = est.observe(counters)

        assert snap.precision == PRECISION_MEASURED
        assert snap.directories_scanned == 200
        assert snap.items_found == 3
        assert snap.total_size == 999
        assert snap.current_path == "/x"
        assert snap.speed == pytest.approx(200.0)
        assert snap.elapsed == pytest.approx(1.0)

    def test_speed_is_smoothed(self):
        clock = FakeClock()
        est = ProgressEstimator(HOME, HOME, clock=clock)
        clock.now += 1.0
        est.observe(WalkCounters(directories_scanned=100))
        clock.now += 1.0
        snap = est.observe(WalkCounters(directories_scanned=300))
        assert snap.speed == pytest.approx(0.8 * 100 + 0.2 * 200)


class TestInterpolatedProgress:
    def test_marked_as_estimated(self):
        clock = FakeClock()
        est = ProgressEstimator(HOME / "Projects", HOME, clock=clock)
        clock.now += 0.5
        snap = est.interpolate(items_found=2, total_size=10)
        assert snap.precision == PRECISION_ESTIMATED
        assert snap.items_found == 2
        assert snap.current_path == str(HOME / "Projects")
        assert snap.speed == pytest.approx(BASE_SPEED, rel=0.06)

    def test_monotonic_and_capped(self):
        clock = FakeClock()
        est = ProgressEstimator(HOME / "Projects", HOME, clock=clock)
        seen = []
        for _ in range(200):
            clock.now += 0.2
            seen.append(est.interpolate().directories_scanned)

        assert seen == sorted(seen)
        assert max(seen) == est.estimated_total
        assert all(n <= est.estimated_total for n in seen)

    def test_never_decreases_even_if_clock_stalls(self):
        clock = FakeClock()
        est = ProgressEstimator(HOME, HOME, clock=clock)
        clock.now += 3.0
        first = est.interpolate().directories_scanned
        # Same instant again, with a lower smoothed speed the raw count would drop.
        est.speed = 1.0
        assert est.interpolate().directories_scanned >= first
