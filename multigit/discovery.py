"""
Repository discovery.

Finds git repository roots at or below a set of filesystem paths.
"""

import logging
import os
from pathlib import Path
from typing import Iterable

from .config import canonical_path
from .errors import DiscoveryError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10


def is_git_repository(path: Path) -> bool:
    """Check if a path is a git repository root.

    `.git` may be a directory or a file (worktrees, submodules).
    """
    return (Path(path) / ".git").exists()


def is_hidden(path: Path) -> bool:
    return Path(path).name.startswith(".")


def find_repositories(path: Path, max_depth: int = DEFAULT_MAX_DEPTH) -> list[Path]:
    """
    Walk a directory tree collecting every git repository root.

    Hidden directories are skipped, the walk does not descend into a
    repository once one is found, and it stops max_depth levels below path.
    """
    root = canonical_path(path)
    if not root.exists():
        raise DiscoveryError(f"Path not found: {path}")
    if is_git_repository(root):
        return [root]

    found = []

    def on_error(err: OSError) -> None:
        logger.debug("Skipping unreadable directory %s: %s", err.filename, err)

    for dirpath, dirnames, _filenames in os.walk(root, onerror=on_error):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)

        kept = []
        if depth < max_depth:
            for name in sorted(dirnames):
                child = current / name
                if is_hidden(child):
                    continue
                if is_git_repository(child):
                    logger.debug("Found repository %s", child)
                    found.append(canonical_path(child))
                else:
                    kept.append(name)
        # Prune in place so os.walk skips repositories and hidden dirs
        dirnames[:] = kept

    return sorted(set(found))


def discover(paths: Iterable[Path], max_depth: int = DEFAULT_MAX_DEPTH) -> list[Path]:
    """Resolve paths to repository roots, collapsing duplicates."""
    matched: set[Path] = set()
    for path in paths:
        repos = find_repositories(path, max_depth=max_depth)
        if not repos:
            logger.info("No git repositories found under %s", path)
        matched.update(repos)
    return sorted(matched)
