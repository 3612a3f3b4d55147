"""Central registry of scanners and direct cleanups."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

from devsweep.core.direct import DirectCleanup
from devsweep.models.scanner import Scanner
from devsweep.scanners.unified import UnifiedScanner

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuOption:
    """Main-menu entry: either an interactive scanner or a direct cleanup."""

    id: str
    name: str
    description: str
    icon: str
    scanner: Scanner | None = None
    cleanup: DirectCleanup | None = None

    @property
    def interactive(self) -> bool:
        return self.scanner is not None


class ScannerRegistry:
    """Stores and retrieves registered scanners and direct cleanups."""

    def __init__(self) -> None:
        self._scanners: dict[str, Scanner] = {}
        self._cleanups: dict[str, DirectCleanup] = {}

    def register(self, scanner: Scanner) -> None:
        """Register a scanner instance."""
        if scanner.id in self._scanners:
            log.warning("Scanner '%s' already registered, skipping duplicate", scanner.id)
            return
        self._scanners[scanner.id] = scanner
        log.debug("Registered scanner: %s (%s)", scanner.id, scanner.name)

    def register_cleanup(self, cleanup: DirectCleanup) -> None:
        if cleanup.id in self._cleanups:
            log.warning("Cleanup '%s' already registered, skipping duplicate", cleanup.id)
            return
        self._cleanups[cleanup.id] = cleanup

    def get(self, scanner_id: str) -> Scanner | None:
        """Get a scanner by its ID."""
        return self._scanners.get(scanner_id)

    def get_all(self) -> list[Scanner]:
        return list(self._scanners.values())

    def get_cleanup(self, cleanup_id: str) -> DirectCleanup | None:
        return self._cleanups.get(cleanup_id)

    def get_cleanups(self) -> list[DirectCleanup]:
        return list(self._cleanups.values())

    def unified(self, scanner_ids: Iterable[str] | None = None) -> Scanner:
        """One scanner covering the given scanners (all when None).

        A single scanner is returned as-is rather than wrapped.
        """
        if scanner_ids is None:
            scanners = self.get_all()
        else:
            scanners = [s for s in (self.get(i) for i in scanner_ids) if s is not None]
        if not scanners:
            raise ValueError("No scanners to combine")
        if len(scanners) == 1:
            return scanners[0]
        return UnifiedScanner(scanners)

    def menu_options(self) -> list[MenuOption]:
        """Interactive scanners first, then the all-in-one scan, then direct cleanups."""
        options = [
            MenuOption(
                id=f"{s.id}_interactive",
                name=f"Clean {s.name} (interactive)",
                description=s.description,
                icon=s.icon,
                scanner=s,
            )
            for s in self._scanners.values()
        ]
        if len(self._scanners) > 1:
            unified = self.unified()
            options.append(
                MenuOption(
                    id="unified_interactive",
                    name=f"Clean {unified.name}",
                    description=unified.description,
                    icon=unified.icon,
                    scanner=unified,
                )
            )
        options.extend(
            MenuOption(id=c.id, name=c.name, description=c.description, icon=c.icon, cleanup=c)
            for c in self._cleanups.values()
        )
        return options

    def __len__(self) -> int:
        return len(self._scanners)

    def __iter__(self) -> Iterator[Scanner]:
        return iter(self._scanners.values())

    def __contains__(self, scanner_id: str) -> bool:
        return scanner_id in self._scanners
