"""
Git operations for multigit.

Provides a wrapper around git operations using GitPython, handling status
snapshots and running git subcommands inside a single repository.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .errors import RepositoryError

logger = logging.getLogger(__name__)

# Display order of change labels in status summaries
CHANGE_LABELS = [
    "new",
    "modified",
    "deleted",
    "renamed",
    "typechange",
    "wt-new",
    "wt-modified",
    "wt-deleted",
    "wt-typechange",
    "wt-renamed",
    "ignored",
    "conflicted",
]

# Porcelain XY pairs that mean an unmerged path
CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

INDEX_CODES = {
    "A": "new",
    "C": "new",
    "M": "modified",
    "D": "deleted",
    "R": "renamed",
    "T": "typechange",
}

WORKTREE_CODES = {
    "A": "wt-new",
    "M": "wt-modified",
    "D": "wt-deleted",
    "R": "wt-renamed",
    "T": "wt-typechange",
}


def parse_porcelain(output: str) -> set[str]:
    """Turn `git status --porcelain` output into a set of change labels."""
    changes = set()
    for line in output.splitlines():
        if len(line) < 2:
            continue
        code = line[:2]
        if code == "??":
            changes.add("wt-new")
        elif code == "!!":
            changes.add("ignored")
        elif code in CONFLICT_CODES:
            changes.add("conflicted")
        else:
            if code[0] in INDEX_CODES:
                changes.add(INDEX_CODES[code[0]])
            if code[1] in WORKTREE_CODES:
                changes.add(WORKTREE_CODES[code[1]])
    return changes


@dataclass
class RepositoryStatus:
    """Live status snapshot of a repository."""

    path: Path
    branch: str | None = None  # None when HEAD is detached
    changes: set[str] = field(default_factory=set)
    tracking: bool = False
    ahead: int | None = None  # None without an upstream
    behind: int | None = None
    has_stashes: bool = False

    @property
    def is_dirty(self) -> bool:
        return bool(self.changes - {"ignored"})

    @property
    def labels(self) -> list[str]:
        return [label for label in CHANGE_LABELS if label in self.changes]

    @property
    def state(self) -> str:
        return "Dirty" if self.is_dirty else "Clean"

    def summary(self) -> str:
        """One-line description such as `[modified] [wt-new]` or `clean`."""
        if not self.changes:
            return "clean"
        return " ".join(f"[{label}]" for label in self.labels)


@dataclass
class CommandOutput:
    """Captured result of a process run inside a repository."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class GitRepository:
    """Wrapper around a git repository for batch operations."""

    def __init__(self, path: Path):
        """Initialize repository wrapper."""
        self.path = Path(path).resolve()
        try:
            self.repo = Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryError(self.path, "not a valid git repository") from e

    def get_current_branch(self) -> str | None:
        """Get the current branch name, or None when HEAD is detached."""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return None

    def has_tracking_branch(self) -> bool:
        """Check if the current branch has an upstream configured."""
        if self.repo.head.is_detached:
            return False
        try:
            return self.repo.active_branch.tracking_branch() is not None
        except (TypeError, ValueError):
            return False

    def ahead_behind(self) -> tuple[int, int] | None:
        """Commits ahead of and behind the upstream, or None without one."""
        if not self.has_tracking_branch():
            return None
        try:
            output = self.repo.git.rev_list("--left-right", "--count", "HEAD...@{upstream}")
        except GitCommandError as e:
            # Upstream configured but never fetched, or an unborn branch
            logger.debug("Could not compare %s with upstream: %s", self.path, e)
            return None
        ahead, behind = output.split()
        return int(ahead), int(behind)

    def has_stashes(self) -> bool:
        try:
            return bool(self.repo.git.stash("list").strip())
        except GitCommandError:
            return False

    def get_changes(self) -> set[str]:
        """Change labels for the working tree and index."""
        try:
            output = self.repo.git.status("--porcelain")
        except GitCommandError as e:
            raise RepositoryError(self.path, f"git status failed: {e.stderr.strip()}") from e
        return parse_porcelain(output)

    def status(self) -> RepositoryStatus:
        """Build a full status snapshot."""
        counts = self.ahead_behind()
        return RepositoryStatus(
            path=self.path,
            branch=self.get_current_branch(),
            changes=self.get_changes(),
            tracking=self.has_tracking_branch(),
            ahead=counts[0] if counts else None,
            behind=counts[1] if counts else None,
            has_stashes=self.has_stashes(),
        )

    def remote_names(self) -> list[str]:
        return [remote.name for remote in self.repo.remotes]

    def run(self, command: str, args: Sequence[str] = ()) -> CommandOutput:
        """Run `git <command> <args>` in the repository, capturing output."""
        logger.debug("Running git %s %s in %s", command, " ".join(args), self.path)
        exit_code, stdout, stderr = self.repo.git.execute(
            ["git", command, *args],
            with_extended_output=True,
            with_exceptions=False,
        )
        return CommandOutput(exit_code=exit_code, stdout=stdout, stderr=stderr)

    def stage(self, args: Sequence[str] = ()) -> CommandOutput:
        """Stage files for commit."""
        return self.run("add", args)

    def commit(self, args: Sequence[str] = ()) -> CommandOutput:
        """Create a commit with the staged changes."""
        return self.run("commit", args)

    def push(self, args: Sequence[str] = ()) -> CommandOutput:
        """Push to the configured remote."""
        if not self.remote_names():
            raise RepositoryError(self.path, "no remote configured")
        return self.run("push", args)

    def pull(self, args: Sequence[str] = ()) -> CommandOutput:
        """Pull from the configured remote."""
        if not self.remote_names():
            raise RepositoryError(self.path, "no remote configured")
        return self.run("pull", args)

    def fetch(self, args: Sequence[str] = ()) -> CommandOutput:
        """Fetch from the configured remotes."""
        if not self.remote_names():
            raise RepositoryError(self.path, "no remote configured")
        return self.run("fetch", args)
