"""
Batch execution across repositories.

This module handles the fan-out of a single command over the selected
repositories, running it in each one in turn and collecting a result per
repository. A failure in one repository never stops the batch.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence

from git.exc import GitCommandError

from .config import Registry
from .discovery import discover
from .errors import RepositoryError
from .filters import Filter, matches_any, needs_status
from .git_ops import CommandOutput, GitRepository, RepositoryStatus

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of a batch command in one repository."""

    path: Path
    success: bool
    summary: str = ""
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None  # None when no process ran
    skipped: bool = False

    @property
    def outcome(self) -> str:
        if self.skipped:
            return "skipped"
        return "ok" if self.success else "failed"


@dataclass
class BatchReport:
    """Results of a batch command, in execution order."""

    command: str
    results: list[OperationResult] = field(default_factory=list)
    aborted: bool = False

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def failed(self) -> list[OperationResult]:
        return [r for r in self.results if not r.success]

    @property
    def succeeded(self) -> list[OperationResult]:
        return [r for r in self.results if r.success and not r.skipped]

    @property
    def skipped(self) -> list[OperationResult]:
        return [r for r in self.results if r.skipped]


@dataclass
class Selected:
    """A repository chosen for a batch, with the status used to choose it."""

    path: Path
    status: RepositoryStatus | None = None


def last_line(text: str) -> str:
    """Last non-blank line of some process output."""
    for line in reversed(text.splitlines()):
        if line.strip():
            return line.strip()
    return ""


def result_from_output(path: Path, label: str, output: CommandOutput) -> OperationResult:
    """Convert captured process output into an OperationResult."""
    if output.ok:
        # git reports push/pull progress on stderr
        summary = last_line(output.stdout) or last_line(output.stderr) or "done"
    else:
        summary = last_line(output.stderr) or last_line(output.stdout)
        summary = summary or f"{label} exited with code {output.exit_code}"
    return OperationResult(
        path=path,
        success=output.ok,
        summary=summary,
        stdout=output.stdout,
        stderr=output.stderr,
        exit_code=output.exit_code,
    )


class BatchExecutor:
    """Runs one command in each selected repository and aggregates the results."""

    def __init__(
        self,
        registry: Registry,
        directory: Path | None = None,
        on_result: Callable[[str, OperationResult], None] | None = None,
    ):
        """
        Initialize the executor.

        Args:
            registry: Loaded registry supplying repositories and settings
            directory: When set, operate on repositories found under this
                directory instead of the registered ones
            on_result: Called with (command, result) after each repository
        """
        self.registry = registry
        self.directory = directory
        self.on_result = on_result

    def repositories(self) -> list[Path]:
        """The working set before filtering, in registry order."""
        if self.directory is not None:
            return discover([self.directory], max_depth=self.registry.settings.max_depth)
        return [entry.path for entry in self.registry.list()]

    def _record(self, report: BatchReport, result: OperationResult) -> None:
        report.results.append(result)
        if not result.success:
            logger.warning("%s failed in %s: %s", report.command, result.path, result.summary)
        if self.on_result is not None:
            self.on_result(report.command, result)

    def select(
        self,
        filters: Iterable[Filter] = (),
        report: BatchReport | None = None,
        with_status: bool = False,
    ) -> list[Selected]:
        """
        Narrow the working set with the filter engine.

        Repositories whose status cannot be read are excluded and recorded as
        failures on report (when given).
        """
        filters = list(filters)
        fetch_status = with_status or needs_status(filters)
        selected = []
        for path in self.repositories():
            status = None
            if fetch_status:
                try:
                    status = GitRepository(path).status()
                except (RepositoryError, GitCommandError) as e:
                    logger.debug("Could not read status of %s: %s", path, e)
                    if report is not None:
                        self._record(
                            report,
                            OperationResult(path=path, success=False, summary=_describe(e)),
                        )
                    continue
            if matches_any(filters, status):
                selected.append(Selected(path=path, status=status))
        logger.info("Selected %d repositories", len(selected))
        return selected

    def run(
        self,
        command: str,
        filters: Iterable[Filter],
        action: Callable[[Selected], OperationResult],
        confirm: Callable[[int], bool] | None = None,
    ) -> BatchReport:
        """
        Apply action to every selected repository.

        Errors raised by action are recorded as failed results and iteration
        continues. If confirm is given and returns False for the number of
        selected repositories, nothing runs and the report is marked aborted.
        """
        report = BatchReport(command=command)
        selected = self.select(filters, report)
        if confirm is not None and selected and not confirm(len(selected)):
            report.aborted = True
            return report

        for repo in selected:
            logger.info("Running %s in %s", command, repo.path)
            try:
                result = action(repo)
            except (RepositoryError, GitCommandError, OSError) as e:
                result = OperationResult(path=repo.path, success=False, summary=_describe(e))
            self._record(report, result)
        return report

    def status(self, filters: Iterable[Filter] = ()) -> BatchReport:
        """Read the status of each selected repository."""

        def action(repo: Selected) -> OperationResult:
            status = repo.status or GitRepository(repo.path).status()
            return OperationResult(path=repo.path, success=True, summary=status.summary())

        return self.run("status", filters, action)

    def git_command(
        self,
        command: str,
        filters: Iterable[Filter] = (),
        args: Sequence[str] = (),
    ) -> BatchReport:
        """Run `git <command> <args>` in each selected repository."""

        def action(repo: Selected) -> OperationResult:
            git_repo = GitRepository(repo.path)
            operation = {
                "add": git_repo.stage,
                "commit": git_repo.commit,
                "push": git_repo.push,
                "pull": git_repo.pull,
                "fetch": git_repo.fetch,
            }.get(command)
            if operation is not None:
                output = operation(args)
            else:
                output = git_repo.run(command, args)
            return result_from_output(repo.path, f"git {command}", output)

        return self.run(command, filters, action)

    def add(self, filters: Iterable[Filter] = (), args: Sequence[str] = ()) -> BatchReport:
        return self.git_command("add", filters, args)

    def commit(self, filters: Iterable[Filter] = (), args: Sequence[str] = ()) -> BatchReport:
        return self.git_command("commit", filters, args)

    def push(self, filters: Iterable[Filter] = (), args: Sequence[str] = ()) -> BatchReport:
        return self.git_command("push", filters, args)

    def fetch(self, filters: Iterable[Filter] = (), args: Sequence[str] = ()) -> BatchReport:
        return self.git_command("fetch", filters, args)

    def pull(self, filters: Iterable[Filter] = (), args: Sequence[str] = ()) -> BatchReport:
        """Pull in each selected repository whose branch tracks an upstream."""

        def action(repo: Selected) -> OperationResult:
            git_repo = GitRepository(repo.path)
            if not git_repo.has_tracking_branch():
                return OperationResult(
                    path=repo.path,
                    success=True,
                    skipped=True,
                    summary="no tracking branch",
                )
            return result_from_output(repo.path, "git pull", git_repo.pull(args))

        return self.run("pull", filters, action)

    def exec(self, command: Sequence[str], filters: Iterable[Filter] = ()) -> BatchReport:
        """Run an arbitrary command with each selected repository as working directory."""
        argv = list(command)
        label = shlex.join(argv)

        def action(repo: Selected) -> OperationResult:
            if not repo.path.is_dir():
                raise RepositoryError(repo.path, "directory not found")
            completed = subprocess.run(argv, cwd=repo.path, capture_output=True, text=True)
            output = CommandOutput(
                exit_code=completed.returncode,
                stdout=completed.stdout,
                stderr=completed.stderr,
            )
            return result_from_output(repo.path, label, output)

        return self.run(label, filters, action)

    def ui(
        self,
        filters: Iterable[Filter] = (),
        confirm: Callable[[int], bool] | None = None,
    ) -> BatchReport:
        """Launch the configured git UI in each selected repository."""
        argv = shlex.split(self.registry.settings.ui_command)

        def action(repo: Selected) -> OperationResult:
            if not argv:
                raise RepositoryError(repo.path, "no ui_command configured")
            if not repo.path.is_dir():
                raise RepositoryError(repo.path, "directory not found")
            completed = subprocess.run(argv, cwd=repo.path, capture_output=True, text=True)
            output = CommandOutput(
                exit_code=completed.returncode,
                stdout=completed.stdout,
                stderr=completed.stderr,
            )
            result = result_from_output(repo.path, argv[0], output)
            if result.success:
                result.summary = f"opened with {argv[0]}"
            return result

        return self.run("ui", filters, action, confirm=confirm)


def _describe(error: Exception) -> str:
    """Short human-readable reason for a per-repository failure."""
    if isinstance(error, GitCommandError):
        return last_line(str(error.stderr or "")) or f"git exited with code {error.status}"
    if isinstance(error, RepositoryError):
        return error.message
    if isinstance(error, FileNotFoundError):
        return f"command not found: {error.filename}"
    return str(error)
