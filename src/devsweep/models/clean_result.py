"""Direct cleanup result dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class CleanResult:
    """Result of running one direct (non-interactive) cleanup."""

    cleanup_id: str
    description: str
    success: bool
    bytes_freed: int = 0
    error: str = ""
