"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import devsweep.core.scanner_loader as scanner_loader
from devsweep.cli import main


@pytest.fixture
def runner(isolate_xdg, monkeypatch):
    monkeypatch.setattr(scanner_loader, "_USER_SCANNER_DIR", isolate_xdg / "no-scanners")
    return CliRunner()


@pytest.fixture
def projects(make_tree):
    return make_tree({
        "web/package.json": 2,
        "web/node_modules/react/index.js": 3000,
        "tiny/node_modules/x.js": 10,
        "ios/Podfile": 2,
        "ios/Pods/Lib/a.m": 500,
    })


class TestList:
    def test_json(self, runner):
        result = runner.invoke(main, ["list", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        kinds = {d["id"]: d["kind"] for d in data}
        assert kinds["node_modules"] == "scanner"
        assert kinds["pods"] == "scanner"
        assert kinds["docker"] == "cleanup"

    def test_text(self, runner):
        result = runner.invoke(main, ["list"])
        assert result.exit_code == 0
        assert "node_modules" in result.output
        assert "npm_cache" in result.output


class TestScan:
    def test_scan_all_json(self, runner, projects):
        result = runner.invoke(main, ["scan", "--path", str(projects), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["scanner_id"] == "unified"
        assert data["total_bytes"] == 3510
        assert [i["kind"] for i in data["items"]] == ["node_modules", "pods", "node_modules"]

    def test_scan_one_kind(self, runner, projects):
        result = runner.invoke(main, ["scan", "pods", "--path", str(projects), "--json"])
        data = json.loads(result.output)
        assert [i["path"] for i in data["items"]] == [str(projects / "ios" / "Pods")]

    def test_scan_text_never_deletes(self, runner, projects):
        result = runner.invoke(main, ["scan", "--path", str(projects)])
        assert result.exit_code == 0
        assert "Total reclaimable" in result.output
        assert (projects / "web" / "node_modules").exists()

    def test_scan_unified_means_all(self, runner, projects):
        result = runner.invoke(main, ["scan", "unified", "--path", str(projects), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["scanner_id"] == "unified"
        assert data["total_bytes"] == 3510

    def test_unknown_scanner(self, runner, projects):
        result = runner.invoke(main, ["scan", "gradle", "--path", str(projects)])
        assert result.exit_code == 1
        assert "Unknown scanner" in result.output


class TestClean:
    def test_dry_run(self, runner, projects):
        result = runner.invoke(main, ["clean", "node_modules", "--path", str(projects), "--dry-run", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "dry_run"
        assert data["would_free_bytes"] == 3010
        assert (projects / "web" / "node_modules").exists()

    def test_abort_on_no(self, runner, projects):
        result = runner.invoke(main, ["clean", "node_modules", "--path", str(projects)], input="n\n")
        assert "Aborted" in result.output
        assert (projects / "web" / "node_modules").exists()

    def test_clean_with_yes(self, runner, projects):
        result = runner.invoke(main, ["clean", "node_modules", "--path", str(projects), "--yes", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "cleaned"
        assert data["total_freed"] == 3010
        assert all(r["success"] for r in data["results"])
        assert not (projects / "web" / "node_modules").exists()
        assert (projects / "ios" / "Pods").exists()

    def test_min_size_filter(self, runner, projects):
        # Nothing reaches 1 MB in the fixture tree.
        result = runner.invoke(main, ["clean", "unified", "--path", str(projects), "--min-size", "1", "--yes"])
        assert result.exit_code == 0
        assert "Nothing to clean" in result.output
        assert (projects / "tiny" / "node_modules").exists()

    def test_direct_cleanup(self, runner, isolate_xdg):
        cache = isolate_xdg / "Library" / "Caches" / "CocoaPods"
        cache.mkdir(parents=True)
        (cache / "spec").write_bytes(b"c" * 10)

        result = runner.invoke(main, ["clean", "cocoapods_cache", "--yes"])
        assert result.exit_code == 0
        assert not cache.exists()


class TestInteractive:
    def test_requires_terminal(self, runner):
        result = runner.invoke(main, [])
        assert result.exit_code == 1
        assert "needs a terminal" in result.output
