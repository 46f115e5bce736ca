"""
CLI entry point for multigit.

Provides the command-line interface for registering repositories and running
batch git operations across them.
"""

import functools
import logging
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .config import DEFAULT_CONFIG_PATH, Registry, canonical_path
from .discovery import discover
from .errors import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    DiscoveryError,
    MultigitError,
)
from .executor import BatchExecutor, BatchReport, OperationResult
from .filters import Filter, parse_filters
from .logs import setup_logging
from .report import print_output, render_list, render_report

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

# Lets passthrough arguments such as `-m "msg"` reach git untouched
PASSTHROUGH_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}


@dataclass
class AppContext:
    """State shared by every subcommand."""

    config_path: Path
    directory: Path | None = None
    _registry: Registry | None = None

    @property
    def registry(self) -> Registry:
        if self._registry is None:
            self._registry = Registry.load(self.config_path)
        return self._registry

    def save(self) -> None:
        self.registry.save(self.config_path)

    def executor(self, show_output: bool = True) -> BatchExecutor:
        on_result = _print_result if show_output else None
        return BatchExecutor(self.registry, directory=self.directory, on_result=on_result)


def _print_result(command: str, result: OperationResult) -> None:
    print_output(console, command, result)


def handle_errors(func):
    """Turn multigit errors and interrupts into messages and exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MultigitError as e:
            err_console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
            raise SystemExit(e.exit_code)
        except KeyboardInterrupt:
            err_console.print("[yellow]Interrupted.[/yellow]")
            raise SystemExit(EXIT_INTERRUPTED)

    return wrapper


def filter_option(func):
    return click.option(
        "--filter",
        "-f",
        "filters",
        multiple=True,
        metavar="TAG",
        help=f"Only include repositories matching TAG ({', '.join(Filter.choices())}). "
        "Can be given multiple times; any match includes the repository.",
    )(func)


def finish(report: BatchReport) -> None:
    """Render the report and exit non-zero if any repository failed."""
    render_report(console, report)
    if not report.success:
        raise SystemExit(EXIT_FAILURE)


@click.group()
@click.version_option(package_name="multigit")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    envvar="MULTIGIT_CONFIG",
    show_default=True,
    help="Path to the registry configuration file",
)
@click.option(
    "--directory",
    "-d",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Operate on repositories found under this directory instead of the registry",
)
@click.option("--verbose", "-v", count=True, help="Increase logging verbosity (repeatable)")
@click.pass_context
def cli(ctx: click.Context, config_path: Path, directory: Path | None, verbose: int):
    """multigit - run git commands across many repositories at once."""
    setup_logging(verbose)
    logger.debug("Using config file %s", config_path)
    ctx.obj = AppContext(config_path=config_path.expanduser(), directory=directory)


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.pass_obj
@handle_errors
def register(app: AppContext, paths: tuple[Path, ...]):
    """Register git repositories or directories of git repositories.

    With no PATHS the current directory is registered.
    """
    registry = app.registry
    targets = list(paths) or [Path.cwd()]
    found = discover(targets, max_depth=registry.settings.max_depth)

    if not found:
        console.print("[yellow]No git repositories found.[/yellow]")
        return

    added = 0
    for repo in found:
        if registry.add(repo):
            console.print(f"[green]Registered: {repo}[/green]", highlight=False)
            added += 1
        else:
            console.print(f"[dim]Already registered: {repo}[/dim]", highlight=False)

    if added:
        app.save()
    console.print(f"\n[green]Registered {added} new repositories ({len(registry.list())} total)[/green]")


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.option("--all", "-a", "unregister_all", is_flag=True, help="Unregister every repository")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@handle_errors
def unregister(app: AppContext, paths: tuple[Path, ...], unregister_all: bool, yes: bool):
    """Unregister git repositories or directories of git repositories.

    With no PATHS the current directory is unregistered.
    """
    registry = app.registry

    if unregister_all:
        if not yes and not click.confirm("Unregister all repositories?", default=False):
            console.print("[yellow]Aborted.[/yellow]")
            return
        count = registry.clear()
        app.save()
        console.print(f"[green]Unregistered {count} repositories[/green]")
        return

    targets = list(paths) or [Path.cwd()]
    # Validate everything before touching the registry
    for path in targets:
        resolved = canonical_path(path)
        if not resolved.exists() and not any(
            entry.path == resolved or resolved in entry.path.parents for entry in registry.list()
        ):
            raise DiscoveryError(f"Path not found: {path}")

    removed_count = 0
    for path in targets:
        removed = registry.remove(path)
        if not removed:
            console.print(f"[yellow]Not registered: {canonical_path(path)}[/yellow]", highlight=False)
        for entry in removed:
            console.print(f"[green]Unregistered: {entry.path}[/green]", highlight=False)
        removed_count += len(removed)

    if removed_count:
        app.save()


@cli.command(name="list")
@filter_option
@click.option("--detailed", "-D", is_flag=True, help="Show branch and state for each repository")
@click.pass_obj
@handle_errors
def list_repositories(app: AppContext, filters: tuple[str, ...], detailed: bool):
    """List registered repositories."""
    parsed = parse_filters(filters)
    report = BatchReport(command="list")
    selected = app.executor(show_output=False).select(parsed, report, with_status=detailed)
    render_list(console, selected, detailed=detailed)

    if report.failed:
        for result in report.failed:
            err_console.print(f"[red]{escape(f'{result.path}: {result.summary}')}[/red]", highlight=False)
        raise SystemExit(EXIT_FAILURE)


@cli.command()
@filter_option
@click.pass_obj
@handle_errors
def status(app: AppContext, filters: tuple[str, ...]):
    """Show the status of repositories."""
    parsed = parse_filters(filters)
    finish(app.executor().status(parsed))


def _git_passthrough(command: str, help_text: str):
    """Build a subcommand that forwards its arguments to `git <command>`."""

    @click.command(name=command, help=help_text, context_settings=PASSTHROUGH_SETTINGS)
    @filter_option
    @click.argument("passthrough", nargs=-1, type=click.UNPROCESSED)
    @click.pass_obj
    @handle_errors
    def git_subcommand(app: AppContext, filters: tuple[str, ...], passthrough: tuple[str, ...]):
        parsed = parse_filters(filters)
        finish(app.executor().git_command(command, parsed, passthrough))

    return git_subcommand


cli.add_command(
    _git_passthrough("add", "Add files to the staging area in the selected repositories.")
)
cli.add_command(_git_passthrough("commit", "Commit changes in the selected repositories."))
cli.add_command(_git_passthrough("push", "Push changes to remote repositories."))
cli.add_command(_git_passthrough("fetch", "Fetch changes from remote repositories."))


@cli.command(context_settings=PASSTHROUGH_SETTINGS)
@filter_option
@click.argument("passthrough", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
@handle_errors
def pull(app: AppContext, filters: tuple[str, ...], passthrough: tuple[str, ...]):
    """Pull changes from remote repositories.

    Repositories whose current branch has no upstream are skipped.
    """
    parsed = parse_filters(filters)
    finish(app.executor().pull(parsed, passthrough))


@cli.command(name="exec", context_settings=PASSTHROUGH_SETTINGS)
@filter_option
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
@handle_errors
def exec_command(app: AppContext, filters: tuple[str, ...], command: tuple[str, ...]):
    """Execute a command in each of the selected repositories.

    Examples:
        multigit exec ls -la
        multigit exec -f dirty git diff --stat
    """
    parsed = parse_filters(filters)
    finish(app.executor().exec(command, parsed))


@cli.command()
@filter_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask before opening several repositories")
@click.pass_obj
@handle_errors
def ui(app: AppContext, filters: tuple[str, ...], yes: bool):
    """Open the configured git UI program for the selected repositories."""
    parsed = parse_filters(filters)

    def confirm(count: int) -> bool:
        if yes or count <= 1:
            return True
        return click.confirm(f"Open {count} repositories?", default=False)

    finish(app.executor(show_output=False).ui(parsed, confirm=confirm))


@cli.command(name="config")
@click.pass_obj
@handle_errors
def edit_config(app: AppContext):
    """Edit the configuration file in $EDITOR."""
    if not app.config_path.exists():
        app.save()
    click.edit(filename=str(app.config_path))
    # Fail loudly if the edit left the file unusable
    registry = Registry.load(app.config_path)
    console.print(
        f"[green]Configuration OK: {len(registry.list())} repositories registered[/green]"
    )


if __name__ == "__main__":
    cli()
