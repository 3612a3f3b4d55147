"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from devsweep.core.walker import WalkCounters
from devsweep.models.scanner import ArtifactDirScanner


class MarkerScanner(ArtifactDirScanner):
    """Finds directories named 'target', no manifest needed."""

    id = "marker"
    name = "Marker directories"
    description = "Test scanner"
    target_name = "target"


class FakeStream:
    """Stands in for ScanStream; the test feeds messages by hand."""

    def __init__(self, scanner, root, cancel=None, *, session=0, capacity=10):
        self.scanner = scanner
        self.root = Path(root)
        self.cancel = cancel
        self.session = session
        self.capacity = capacity
        self.counters = WalkCounters()
        self.started = False

    def start(self):
        self.started = True
        return self

    def pull(self):
        raise AssertionError("FakeStream is driven by the test")


@pytest.fixture
def make_tree(tmp_path) -> Callable[[dict[str, int | None]], Path]:
    """Build a directory tree under tmp_path/root.

    Keys are relative paths; an int value creates a file of that many bytes,
    ``None`` creates an empty directory.
    """

    def _make(spec: dict[str, int | None]) -> Path:
        root = tmp_path / "root"
        root.mkdir(exist_ok=True)
        for rel, size in spec.items():
            path = root / rel
            if size is None:
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(b"x" * size)
        return root

    return _make


@pytest.fixture
def marker_scanner() -> MarkerScanner:
    return MarkerScanner()


@pytest.fixture
def fake_stream_cls() -> type[FakeStream]:
    return FakeStream


@pytest.fixture
def isolate_xdg(tmp_path, monkeypatch):
    """Point config, data and home at empty temp directories."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    return home
