"""Scanner discovery and loading."""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import pkgutil
from pathlib import Path
from types import ModuleType
from typing import Iterable

from devsweep.core.direct import get_all_cleanups
from devsweep.core.registry import ScannerRegistry
from devsweep.models.scanner import ArtifactDirScanner, Scanner
from devsweep.scanners.unified import UnifiedScanner
from devsweep.utils import xdg_data_home

log = logging.getLogger(__name__)

# Classes that are not instantiated directly: abstract bases and the
# composite, which the registry builds from the loaded scanners.
_SKIPPED = {Scanner, ArtifactDirScanner, UnifiedScanner}

_USER_SCANNER_DIR = xdg_data_home() / "devsweep" / "scanners"


def _find_scanners_in_module(module: ModuleType) -> list[type[Scanner]]:
    """Find all concrete Scanner subclasses defined in a module."""
    found: list[type[Scanner]] = []
    for _, obj in inspect.getmembers(module, inspect.isclass):
        if (
            issubclass(obj, Scanner)
            and obj not in _SKIPPED
            and obj.__module__ == module.__name__
            and not inspect.isabstract(obj)
        ):
            found.append(obj)
    return found


def _load_builtin_scanners() -> list[type[Scanner]]:
    """Load scanners from the devsweep.scanners package."""
    import devsweep.scanners as scanners_pkg

    found: list[type[Scanner]] = []
    for _importer, modname, _ispkg in pkgutil.iter_modules(scanners_pkg.__path__):
        try:
            module = importlib.import_module(f"devsweep.scanners.{modname}")
            found.extend(_find_scanners_in_module(module))
        except Exception:
            log.exception("Failed to load built-in scanner module: %s", modname)
    return found


def _load_scanners_from_directory(directory: Path) -> list[type[Scanner]]:
    """Load scanners from an external directory of modules or packages."""
    if not directory.is_dir():
        return []

    found: list[type[Scanner]] = []
    for path in sorted(directory.iterdir()):
        if path.is_dir() and (path / "__init__.py").exists():
            module_file = path / "scanner.py"
            if not module_file.exists():
                module_file = path / "__init__.py"
        elif path.suffix == ".py" and path.name != "__init__.py":
            module_file = path
        else:
            continue

        try:
            spec = importlib.util.spec_from_file_location(f"devsweep_ext_scanner_{path.stem}", module_file)
            if spec is None or spec.loader is None:
                continue
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            found.extend(_find_scanners_in_module(module))
        except Exception:
            log.exception("Failed to load scanner from: %s", module_file)
    return found


def load_scanners(registry: ScannerRegistry, extra_paths: Iterable[Path | str] = ()) -> None:
    """Discover and register scanners and the direct cleanup catalog.

    Scanners are searched in order: built-in, user-local, then the
    directories listed in the ``scanners.paths`` setting.
    """
    scanner_classes: list[type[Scanner]] = []
    scanner_classes.extend(_load_builtin_scanners())
    scanner_classes.extend(_load_scanners_from_directory(_USER_SCANNER_DIR))
    for path in extra_paths:
        scanner_classes.extend(_load_scanners_from_directory(Path(path).expanduser()))

    for cls in scanner_classes:
        try:
            registry.register(cls())
        except Exception:
            log.exception("Failed to instantiate scanner: %s", cls.__name__)

    for cleanup in get_all_cleanups():
        registry.register_cleanup(cleanup)

    log.info("Loaded %d scanners", len(registry))
