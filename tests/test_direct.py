"""Tests for the one-shot cache cleanups."""

from __future__ import annotations

import subprocess

import pytest

import devsweep.core.direct as direct
from devsweep.core.direct import DirectCleanup, get_all_cleanups, get_cleanup, run_cleanup, run_cleanups


@pytest.fixture
def home(tmp_path):
    home = tmp_path / "home"
    (home / ".npm" / "_cacache").mkdir(parents=True)
    (home / ".npm" / "_cacache" / "blob").write_bytes(b"n" * 500)
    return home


class TestCatalog:
    def test_ids_are_unique(self):
        ids = [c.id for c in get_all_cleanups()]
        assert len(ids) == len(set(ids))

    def test_lookup(self):
        assert get_cleanup("npm_cache").paths == (".npm",)
        assert get_cleanup("nope") is None

    def test_directories_are_under_home(self, tmp_path):
        dirs = get_cleanup("xcode").directories(tmp_path)
        assert all(d.is_relative_to(tmp_path) for d in dirs)


class TestRunCleanup:
    def test_removes_directories(self, home, monkeypatch):
        monkeypatch.setattr(direct, "has_command", lambda name: False)
        result = run_cleanup(get_cleanup("npm_cache"), home)

        assert result.success
        assert result.cleanup_id == "npm_cache"
        assert result.bytes_freed == 500
        assert "freed" in result.description
        assert not (home / ".npm").exists()

    def test_runs_command_when_installed(self, home, monkeypatch):
        calls = []
        monkeypatch.setattr(direct, "has_command", lambda name: True)
        monkeypatch.setattr(direct.subprocess, "run", lambda cmd, **kw: calls.append(cmd))

        result = run_cleanup(get_cleanup("npm_cache"), home)
        assert result.success
        assert calls[-1] == ["npm", "cache", "clean", "--force"]

    def test_command_failure_is_reported(self, home, monkeypatch):
        def fail(cmd, **kw):
            raise subprocess.CalledProcessError(1, cmd)

        monkeypatch.setattr(direct, "has_command", lambda name: True)
        monkeypatch.setattr(direct.subprocess, "run", fail)

        result = run_cleanup(get_cleanup("npm_cache"), home)
        assert not result.success
        assert result.bytes_freed == 500
        assert "npm cache clean" in result.error

    def test_command_only_cleanup_needs_tool(self, tmp_path, monkeypatch):
        monkeypatch.setattr(direct, "has_command", lambda name: False)
        result = run_cleanup(get_cleanup("docker"), tmp_path)
        assert not result.success
        assert "docker is not installed" in result.error

    def test_nothing_to_do_succeeds(self, tmp_path, monkeypatch):
        monkeypatch.setattr(direct, "has_command", lambda name: False)
        result = run_cleanup(get_cleanup("bun_cache"), tmp_path)
        assert result.success
        assert result.bytes_freed == 0


class TestSystemCleanup:
    def test_removes_ds_store_and_empties_trash(self, make_tree):
        home = make_tree({
            "a/.DS_Store": 10,
            "a/b/.DS_Store": 4,
            "a/notes.txt": 3,
            "Library/Prefs/.DS_Store": 8,
            ".Trash/old.zip": 20,
            ".Trash/folder/f": 5,
        })
        result = run_cleanup(get_cleanup("system"), home)

        assert result.success
        assert result.cleanup_id == "system"
        assert result.bytes_freed == 39
        assert "Removed 2 .DS_Store files" in result.description
        assert not (home / "a" / ".DS_Store").exists()
        assert not (home / "a" / "b" / ".DS_Store").exists()
        assert (home / "a" / "notes.txt").exists()
        assert (home / "Library" / "Prefs" / ".DS_Store").exists()
        assert (home / ".Trash").is_dir()
        assert list((home / ".Trash").iterdir()) == []

    def test_without_trash(self, make_tree):
        home = make_tree({"x/.DS_Store": 6})
        result = run_cleanup(get_cleanup("system"), home)
        assert result.success
        assert result.bytes_freed == 6
        assert "Trash" not in result.description


class TestRunCleanups:
    def test_runs_in_order(self, tmp_path, monkeypatch):
        monkeypatch.setattr(direct, "has_command", lambda name: False)
        seen = []
        cleanups = [get_cleanup("bun_cache"), get_cleanup("cocoapods_cache")]
        results = run_cleanups(cleanups, tmp_path, on_result=seen.append)
        assert [r.cleanup_id for r in results] == ["bun_cache", "cocoapods_cache"]
        assert seen == results

    def test_crash_becomes_failed_result(self, tmp_path, monkeypatch):
        def boom(cleanup, home):
            raise RuntimeError("boom")

        monkeypatch.setattr(direct, "run_cleanup", boom)
        results = run_cleanups([DirectCleanup("x", "X", "x", "?")], tmp_path)
        assert len(results) == 1
        assert not results[0].success
        assert results[0].error == "Cleanup crashed"
