"""Exception types raised while defining tasks.

Nothing raised during a run escapes the DynamicValue boundary; these types
only surface at compile/load time.
"""

from __future__ import annotations

from typing import Optional


class CompileError(Exception):
    """Expression text could not be compiled."""

    def __init__(self, source: str, diagnostic: str, text: Optional[str] = None):
        super().__init__(f"Cannot compile expression {source!r}: {diagnostic}")
        self.source = source
        self.diagnostic = diagnostic
        # text as given, before whitespace was trimmed
        self.text = source if text is None else text


class EmptyExpressionError(CompileError):
    """Expression text is empty after trimming whitespace."""

    def __init__(self, source: str = ""):
        super().__init__(source.strip(), "expression is empty", text=source)


class TaskDefinitionError(Exception):
    """A task definition file is malformed."""

    def __init__(
        self,
        message: str,
        task_name: Optional[str] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        location = ""
        if task_name:
            location = f"task '{task_name}'"
            if field:
                location += f" ({field})"
            location += ": "
        super().__init__(location + message)
        self.task_name = task_name
        self.field = field
        self.original_error = original_error


class CommandFailed(Exception):
    """An external command run by a step exited non-zero."""

    def __init__(self, command: str, exit_code: int, stderr_tail: str = ""):
        detail = f"Command failed with exit code {exit_code}: {command}"
        if stderr_tail:
            detail += f"\n{stderr_tail}"
        super().__init__(detail)
        self.command = command
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail
