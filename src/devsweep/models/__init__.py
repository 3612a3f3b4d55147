"""Devsweep data models."""

from devsweep.models.clean_result import CleanResult
from devsweep.models.item import DeletionResult, DeletionState, InvalidTransition, Item
from devsweep.models.scanner import ArtifactDirScanner, Scanner, ScannerInfo

__all__ = [
    "ArtifactDirScanner",
    "CleanResult",
    "DeletionResult",
    "DeletionState",
    "InvalidTransition",
    "Item",
    "Scanner",
    "ScannerInfo",
]
