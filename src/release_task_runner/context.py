"""Execution context shared by every expression evaluated in a run."""

from __future__ import annotations

from typing import Any, Callable, Optional

from .diagnostics import DiagnosticCapture, capture_diagnostic
from .transfer import TransferVariableList


class ExecutionContext:
    """Variable bindings, primitives and collaborators for one run.

    A single instance is shared by reference across the whole pipeline. The
    namespace handed to an expression is rebuilt from the live state on each
    invocation, so a value written by one step is visible to every later one.
    """

    def __init__(
        self,
        variables: Optional[dict[str, Any]] = None,
        primitives: Optional[dict[str, Callable[..., Any]]] = None,
        transfer: Optional[TransferVariableList] = None,
        capture: Optional[DiagnosticCapture] = None,
    ) -> None:
        self.variables: dict[str, Any] = dict(variables or {})
        self.primitives: dict[str, Callable[..., Any]] = dict(primitives or {})
        self.transfer = transfer if transfer is not None else TransferVariableList()
        self.capture: DiagnosticCapture = capture or capture_diagnostic

    def register_primitive(self, name: str, func: Callable[..., Any]) -> None:
        self.primitives[name] = func

    def set_var(self, name: str, value: Any) -> Any:
        """Bind ``name`` for later expressions and return ``value``."""
        self.variables[name] = value
        return value

    def get_var(self, name: str, default: Optional[Any] = None) -> Any:
        return self.variables.get(name, default)

    def namespace(self) -> dict[str, Any]:
        """Names visible to an expression.

        Variables shadow primitives; the context helpers always win.
        """
        ns: dict[str, Any] = {}
        ns.update(self.primitives)
        ns.update(self.variables)
        ns.update({
            "set_var": self.set_var,
            "get_var": self.get_var,
            "transfer": self.transfer,
            "variables": self.variables,
        })
        return ns
