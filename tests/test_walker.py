"""Tests for the streaming directory walk."""

from __future__ import annotations

import os

import pytest

from devsweep.core.cancel import CancelToken, ScanCancelled
from devsweep.core.walker import WalkCounters, walk


class TestWalk:
    def test_yields_targets_and_counts(self, make_tree, marker_scanner):
        root = make_tree({"a/target/f": 10, "b/c/target/g": 20, "d": None})
        counters = WalkCounters()

        items = list(walk(marker_scanner, root, CancelToken(), counters))

        assert [i.size for i in items] == [10, 20]
        assert counters.items_found == 2
        assert counters.total_size == 30
        # root, a, a/target, b, b/c, b/c/target, d
        assert counters.directories_scanned == 7

    def test_does_not_descend_into_targets(self, make_tree, marker_scanner):
        root = make_tree({"target/inner/target/f": 5})
        items = list(walk(marker_scanner, root, CancelToken()))
        assert [i.path for i in items] == [root / "target"]
        assert items[0].size == 5

    def test_ignores_symlinked_dirs(self, make_tree, marker_scanner):
        root = make_tree({"real/target/f": 1, "other": None})
        os.symlink(root / "real", root / "other" / "link")
        items = list(walk(marker_scanner, root, CancelToken()))
        assert [i.path for i in items] == [root / "real" / "target"]

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can read everything")
    def test_unreadable_subtree_skipped(self, make_tree, marker_scanner):
        root = make_tree({"a/locked/target/f": 1, "a/open/target/f": 2, "b/target/f": 3})
        locked = root / "a" / "locked"
        locked.chmod(0)
        try:
            items = list(walk(marker_scanner, root, CancelToken()))
        finally:
            locked.chmod(0o755)
        assert [i.path for i in items] == [root / "a" / "open" / "target", root / "b" / "target"]

    def test_permission_error_skips_subtree(self, make_tree, marker_scanner, monkeypatch):
        root = make_tree({"a/locked/target/f": 1, "a/open/target/f": 2, "b/target/f": 3})
        locked = str(root / "a" / "locked")
        real_scandir = os.scandir

        def scandir(path="."):
            if os.fspath(path) == locked:
                raise PermissionError(13, "Permission denied", locked)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        counters = WalkCounters()
        items = list(walk(marker_scanner, root, CancelToken(), counters))

        assert [i.path for i in items] == [root / "a" / "open" / "target", root / "b" / "target"]
        assert counters.items_found == 2

    def test_cancel_mid_walk_keeps_earlier_items(self, make_tree, marker_scanner):
        root = make_tree({f"p{n}/target/f": n + 1 for n in range(5)})
        cancel = CancelToken()
        found = []

        with pytest.raises(ScanCancelled):
            for item in walk(marker_scanner, root, cancel):
                found.append(item)
                if len(found) == 3:
                    cancel.cancel()

        assert [i.path.parent.name for i in found] == ["p0", "p1", "p2"]

    def test_cancelled_before_start(self, make_tree, marker_scanner):
        root = make_tree({"target/f": 1})
        cancel = CancelToken()
        cancel.cancel()
        with pytest.raises(ScanCancelled):
            next(walk(marker_scanner, root, cancel))
