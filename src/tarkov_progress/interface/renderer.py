"""
Display helpers for the inspection CLI.

Renders formatted progress and invalidation cascades as rich tables.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..state.constants import edition_name
from ..state.schema import FormattedProgress, ProgressEntry


# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",
    "complete": "green",
    "failed": "dark_goldenrod",
    "invalid": "dark_red",
    "dim": "dim",
}


def entry_status(entry: ProgressEntry) -> str:
    if entry.invalid:
        return "invalid"
    if entry.complete and entry.failed:
        return "failed"
    if entry.complete:
        return "complete"
    return "active"


def _styled(status: str) -> str:
    style = THEME.get(status, THEME["dim"])
    return f"[{style}]{status}[/{style}]"


def summarize(entries: list[ProgressEntry]) -> dict[str, int]:
    counts = {"complete": 0, "failed": 0, "invalid": 0, "active": 0}
    for entry in entries:
        counts[entry_status(entry)] += 1
    return counts


def render_progress(
    progress: FormattedProgress,
    explanations: dict[str, list[str]] | None = None,
    target: Console | None = None,
) -> None:
    """Print a header panel, a per-task table and per-kind summaries."""
    out = target or console
    explanations = explanations or {}

    out.print(Panel(
        f"[bold]{progress.display_name}[/bold]  ({progress.user_id})\n"
        f"Level {progress.player_level} · {progress.pmc_faction} · "
        f"{edition_name(progress.game_edition)}",
        title="Progress",
        border_style=THEME["primary"],
    ))

    table = Table(title="Tasks")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Why", style=THEME["dim"])
    for entry in progress.tasks_progress:
        table.add_row(
            entry.id,
            _styled(entry_status(entry)),
            "; ".join(explanations.get(entry.id, [])),
        )
    out.print(table)

    summary = Table(title="Summary", box=None)
    summary.add_column("Kind")
    for status in ("complete", "failed", "invalid", "active"):
        summary.add_column(status.capitalize(), justify="right")
    for label, entries in (
        ("Tasks", progress.tasks_progress),
        ("Objectives", progress.task_objectives_progress),
        ("Hideout modules", progress.hideout_modules_progress),
        ("Hideout parts", progress.hideout_parts_progress),
    ):
        counts = summarize(entries)
        summary.add_row(label, *(str(counts[s]) for s in ("complete", "failed", "invalid", "active")))
    out.print(summary)


def render_cascade(task_id: str, invalidated: list[str], target: Console | None = None) -> None:
    """Print the tasks an invalidation of ``task_id`` would reach."""
    out = target or console
    if not invalidated:
        out.print(f"[{THEME['dim']}]Invalidating {task_id} affects no tasks.[/{THEME['dim']}]")
        return

    table = Table(title=f"Cascade from {task_id}")
    table.add_column("#", justify="right")
    table.add_column("Task")
    for i, reached in enumerate(invalidated, 1):
        table.add_row(str(i), reached)
    out.print(table)
