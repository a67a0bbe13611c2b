"""Diagnostic records for faults captured during evaluation.

The task engine never builds these itself; it calls the capture function held
by the execution context and stores whatever comes back as the value's
``error_detail``.
"""

from __future__ import annotations

import traceback
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from rich.console import Console
from rich.markup import escape

from .constants import ERROR_TYPE_EVALUATION_FAULT

DiagnosticCapture = Callable[[str, str, Optional[BaseException]], Any]


@dataclass
class ErrorRecord:
    """Fault captured while evaluating a dynamic value."""

    message: str
    identifier: str
    error_type: str = ERROR_TYPE_EVALUATION_FAULT
    exception_type: Optional[str] = None
    error_detail: str = ""
    traceback: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        if self.error_detail:
            return f"{self.message}: {self.error_detail}"
        return self.message


def capture_diagnostic(
    message: str,
    identifier: str,
    fault: Optional[BaseException] = None,
) -> ErrorRecord:
    """Build an :class:`ErrorRecord` for a fault.

    Args:
        message: Human-readable description of what failed.
        identifier: Name of the failing value, e.g. ``"deploy.steps[2]"``.
        fault: The underlying exception, if any.

    Returns:
        The diagnostic record.
    """
    record = ErrorRecord(
        message=message,
        identifier=identifier,
        created_at=datetime.now(timezone.utc).isoformat(),
    )
    if fault is not None:
        record.exception_type = type(fault).__name__
        record.error_detail = str(fault)
        record.traceback = "".join(
            traceback.format_exception(type(fault), fault, fault.__traceback__)
        )
    return record


def format_error_record(record: Any, verbose: bool = False) -> str:
    """Render a diagnostic record as plain text.

    Records that are not :class:`ErrorRecord` instances are rendered with
    ``str()``.
    """
    if not isinstance(record, ErrorRecord):
        return str(record)

    console = Console(record=True, width=2000 if verbose else 80)
    console.print(f"[red]Error: {escape(record.identifier)}[/red]", style="bold")
    console.print(f"[bold]Message:[/bold] {escape(record.message)}")
    if record.exception_type:
        detail = record.error_detail
        if len(detail) > 200 and not verbose:
            detail = detail[:200] + "..."
        console.print(f"[bold]{record.exception_type}:[/bold] {escape(detail)}")
    if verbose and record.traceback:
        console.print(record.traceback, markup=False)
    return console.export_text()
