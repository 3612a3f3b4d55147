"""Scanner for JavaScript ``node_modules`` directories."""

from __future__ import annotations

from devsweep.models.scanner import ArtifactDirScanner


class NodeModulesScanner(ArtifactDirScanner):
    """Finds top-level node_modules directories of JavaScript projects."""

    id = "node_modules"
    name = "Node.js node_modules directories"
    description = "Find and remove node_modules directories from JavaScript projects"
    icon = "📦"

    target_name = "node_modules"
    manifests = ("package.json",)
    hidden_skip = frozenset({
        ".git", ".svn", ".hg", ".bzr",
        ".DS_Store", ".localized", ".fseventsd", ".Spotlight-V100", ".Trashes", ".TemporaryItems",
        ".npm", ".yarn", ".cache", ".temp", ".tmp",
        ".Trash", ".trash",
    })
    hidden_allow = frozenset({".vscode", ".idea", ".config", ".local", ".ssh", ".docker"})
    build_dirs = frozenset({"build", "dist", "coverage", "target", "__pycache__", ".pytest_cache"})
