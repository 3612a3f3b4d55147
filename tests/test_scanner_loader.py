"""Tests for scanner discovery, loading and the registry."""

from __future__ import annotations

import textwrap

import pytest

import devsweep.core.scanner_loader as scanner_loader
from devsweep.core.registry import ScannerRegistry
from devsweep.core.scanner_loader import _find_scanners_in_module, load_scanners
from devsweep.scanners import node_modules
from devsweep.scanners.unified import UnifiedScanner

EXTERNAL_SCANNER = textwrap.dedent(
    """
    from devsweep.models.scanner import ArtifactDirScanner

    class VendorScanner(ArtifactDirScanner):
        id = "vendor"
        name = "Vendor directories"
        description = "Find vendor directories"
        target_name = "vendor"
        manifests = ("composer.json",)
        manifest_required = True
    """
)


@pytest.fixture
def no_user_scanners(tmp_path, monkeypatch):
    monkeypatch.setattr(scanner_loader, "_USER_SCANNER_DIR", tmp_path / "no-such-dir")


class TestScannerRegistry:
    def test_register_and_get(self, marker_scanner):
        registry = ScannerRegistry()
        registry.register(marker_scanner)

        assert registry.get("marker") is marker_scanner
        assert "marker" in registry
        assert len(registry) == 1
        assert list(registry) == [marker_scanner]

    def test_duplicate_registration_skipped(self, marker_scanner):
        registry = ScannerRegistry()
        registry.register(marker_scanner)
        registry.register(type(marker_scanner)())
        assert len(registry) == 1
        assert registry.get("marker") is marker_scanner

    def test_unified_of_one_is_the_scanner(self, marker_scanner):
        registry = ScannerRegistry()
        registry.register(marker_scanner)
        assert registry.unified() is marker_scanner

    def test_unified_without_scanners_fails(self):
        with pytest.raises(ValueError):
            ScannerRegistry().unified()

    def test_unified_skips_unknown_ids(self, marker_scanner):
        registry = ScannerRegistry()
        registry.register(marker_scanner)
        assert registry.unified(["marker", "nope"]) is marker_scanner


class TestScannerLoader:
    def test_loads_builtin_scanners(self, no_user_scanners):
        registry = ScannerRegistry()
        load_scanners(registry)
        assert sorted(s.id for s in registry) == ["node_modules", "pods"]

    def test_registers_direct_cleanups(self, no_user_scanners):
        registry = ScannerRegistry()
        load_scanners(registry)
        assert {c.id for c in registry.get_cleanups()} == {
            "npm_cache", "yarn_cache", "bun_cache", "cocoapods_cache", "xcode", "docker", "system",
        }

    def test_menu_order(self, no_user_scanners):
        registry = ScannerRegistry()
        load_scanners(registry)
        options = registry.menu_options()
        ids = [o.id for o in options]

        assert ids[:3] == ["node_modules_interactive", "pods_interactive", "unified_interactive"]
        assert all(o.interactive for o in options[:3])
        assert not any(o.interactive for o in options[3:])
        assert isinstance(options[2].scanner, UnifiedScanner)

    def test_find_skips_imported_bases(self):
        found = _find_scanners_in_module(node_modules)
        assert [cls.__name__ for cls in found] == ["NodeModulesScanner"]

    def test_loads_external_file(self, no_user_scanners, tmp_path):
        ext = tmp_path / "ext"
        ext.mkdir()
        (ext / "vendor.py").write_text(EXTERNAL_SCANNER)

        registry = ScannerRegistry()
        load_scanners(registry, [ext])
        assert "vendor" in registry

    def test_loads_external_package(self, no_user_scanners, tmp_path):
        pkg = tmp_path / "ext" / "vendor_pkg"
        pkg.mkdir(parents=True)
        (pkg / "__init__.py").write_text("")
        (pkg / "scanner.py").write_text(EXTERNAL_SCANNER)

        registry = ScannerRegistry()
        load_scanners(registry, [tmp_path / "ext"])
        assert "vendor" in registry

    def test_broken_external_module_is_logged(self, no_user_scanners, tmp_path, caplog):
        ext = tmp_path / "ext"
        ext.mkdir()
        (ext / "broken.py").write_text("raise RuntimeError('nope')\n")

        registry = ScannerRegistry()
        load_scanners(registry, [ext])
        assert len(registry) == 2
        assert "Failed to load scanner" in caplog.text

    def test_missing_directory_ignored(self, no_user_scanners, tmp_path):
        registry = ScannerRegistry()
        load_scanners(registry, [tmp_path / "nowhere"])
        assert len(registry) == 2
