"""
Terminal presentation of batch results and repository listings.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .executor import BatchReport, OperationResult, Selected

OUTCOME_STYLES = {
    "ok": "green",
    "failed": "red",
    "skipped": "yellow",
}


def print_output(console: Console, command: str, result: OperationResult) -> None:
    """Print captured output of one repository under a header rule."""
    if not (result.stdout.strip() or result.stderr.strip()):
        return
    console.rule(f"[green]{escape(command)}[/green] in [cyan]{escape(str(result.path))}[/cyan]")
    if result.stdout.strip():
        console.print(escape(result.stdout.rstrip()), highlight=False)
    if result.stderr.strip():
        style = "red" if not result.success else "dim"
        console.print(escape(result.stderr.rstrip()), style=style, highlight=False)


def render_report(console: Console, report: BatchReport) -> None:
    """Render a results table followed by a totals line."""
    if report.aborted:
        console.print("[yellow]Aborted.[/yellow]")
        return
    if not report.results:
        console.print("[yellow]No repositories selected.[/yellow]")
        return

    table = Table(title=f"multigit {escape(report.command)}")
    table.add_column("Repository", style="cyan", overflow="fold")
    table.add_column("Outcome", no_wrap=True)
    table.add_column("Summary", style="white")

    for result in report.results:
        style = OUTCOME_STYLES[result.outcome]
        table.add_row(
            escape(str(result.path)),
            f"[{style}]{result.outcome}[/{style}]",
            escape(result.summary),
        )

    console.print(table)

    totals = f"{len(report.succeeded)} succeeded, {len(report.failed)} failed"
    if report.skipped:
        totals += f", {len(report.skipped)} skipped"
    style = "green" if report.success else "red"
    console.print(f"[{style}]{totals}[/{style}]")


def _display_option(value: int | None) -> str:
    return "" if value is None else str(value)


def render_list(console: Console, selected: list[Selected], detailed: bool = False) -> None:
    """Print selected repositories, either as bare paths or a detail table."""
    if not selected:
        console.print("[yellow]No repositories selected.[/yellow]")
        return

    if not detailed:
        for repo in selected:
            console.print(f"[cyan]{escape(str(repo.path))}[/cyan]", highlight=False)
        return

    table = Table()
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Path", style="dim", overflow="fold")
    table.add_column("State", no_wrap=True)
    table.add_column("Branch", style="green", no_wrap=True)
    table.add_column("Behind", justify="right", no_wrap=True)
    table.add_column("Ahead", justify="right", no_wrap=True)
    table.add_column("Stashes", no_wrap=True)

    for repo in selected:
        status = repo.status
        state = f"[yellow]{status.state}[/yellow]" if status.is_dirty else status.state
        table.add_row(
            escape(repo.path.name),
            escape(str(repo.path)),
            state,
            escape(status.branch or "(detached)"),
            _display_option(status.behind),
            _display_option(status.ahead),
            "yes" if status.has_stashes else "",
        )

    console.print(table)
