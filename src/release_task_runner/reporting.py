"""Render pipeline reports for humans and for JSON output."""

from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .diagnostics import format_error_record
from .task import PipelineReport

_STATUS_STYLES = {
    "succeeded": "green",
    "warning": "yellow",
    "skipped": "cyan",
    "failed": "red",
    "pending": "dim",
}


def summarize_report(report: PipelineReport) -> dict[str, Any]:
    """Return a JSON-friendly summary of a pipeline run."""
    return report.to_dict()


def build_report_table(report: PipelineReport) -> Table:
    table = Table(title="Task results")
    table.add_column("#", justify="right")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Steps run", justify="right")
    table.add_column("Detail")

    for index, entry in enumerate(report, 1):
        task = entry.task
        status = entry.status
        style = _STATUS_STYLES.get(status, "")
        detail = ""
        if entry.skipped:
            detail = ", ".join(c.identifier for c in task.pre_conditions.failed())
        elif entry.error:
            step = task.failed_step()
            if step is not None:
                detail = f"{step.identifier}: {step.error_detail}"
        elif entry.post_conditions_passed is False:
            detail = ", ".join(c.identifier for c in task.post_conditions.failed())
        table.add_row(
            str(index),
            escape(task.name),
            f"[{style}]{status}[/{style}]" if style else status,
            f"{task.task_steps.processed_count()}/{len(task.task_steps)}",
            escape(detail),
        )
    return table


def render_report(
    report: PipelineReport,
    console: Optional[Console] = None,
    verbose: bool = False,
) -> None:
    """Print the report table and, when verbose, each failing step's diagnostic."""
    console = console or Console()
    console.print(build_report_table(report))
    if verbose:
        for entry in report.failed_tasks:
            step = entry.task.failed_step()
            if step is not None:
                console.print(format_error_record(step.error_detail, verbose=True), markup=False)
    summary = (
        f"{len(report)} task(s): {len(report.failed_tasks)} failed, "
        f"{len(report.skipped_tasks)} skipped, "
        f"{len(report.postcondition_warnings)} post-condition warning(s)"
    )
    console.print(f"[{'green' if report.succeeded else 'red'}]{summary}[/]")
