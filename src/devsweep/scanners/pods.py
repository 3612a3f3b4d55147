"""Scanner for CocoaPods ``Pods`` directories."""

from __future__ import annotations

from devsweep.models.scanner import SYSTEM_DIRS, ArtifactDirScanner


class PodsScanner(ArtifactDirScanner):
    """Finds Pods directories that sit next to a Podfile or Podfile.lock."""

    id = "pods"
    name = "CocoaPods Pods directories"
    description = "Find and remove Pods directories from iOS/macOS projects"
    icon = "🍎"

    target_name = "Pods"
    manifests = ("Podfile", "Podfile.lock")
    manifest_required = True
    skip_all_hidden = True
    system_dirs = SYSTEM_DIRS | {"private"}
    build_dirs = frozenset({
        "build", "DerivedData", ".build", "dist", "coverage", ".git", ".svn", "target", "node_modules",
    })
