"""Deferred values and the ordered collections built from them.

A :class:`DynamicValue` wraps a compiled expression and evaluates it on
demand. Evaluation never raises for a failing expression: the fault is
captured into the value's state (``error`` / ``error_detail``) and callers
inspect it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from loguru import logger

from .context import ExecutionContext
from .expressions import Expression


# ---------------------------------------------------------------------------
# Evaluation outcome
# ---------------------------------------------------------------------------

class EvaluationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class EvaluationOutcome:
    """Result of evaluating one dynamic value."""
    status: EvaluationStatus
    result: Any = None
    error_detail: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status == EvaluationStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == EvaluationStatus.FAILED


# ---------------------------------------------------------------------------
# DynamicValue
# ---------------------------------------------------------------------------

@dataclass
class DynamicValue:
    """Atomic deferred computation with captured success/failure state.

    ``result`` is only meaningful when ``processed`` is true and ``error`` is
    false. After the first :meth:`evaluate` the state is fixed.
    """
    name: Optional[str] = None
    expression: Optional[Expression] = None
    result: Any = None
    processed: bool = False
    error: bool = False
    error_detail: Any = None
    _outcome: Optional[EvaluationOutcome] = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def create(cls, name: Optional[str] = None) -> "DynamicValue":
        return cls(name=name)

    @property
    def identifier(self) -> str:
        if self.name:
            return self.name
        if self.expression is not None:
            return self.expression.source
        return "<unset>"

    def set_expression(self, expression: Optional[Expression]) -> "DynamicValue":
        if self.processed:
            raise RuntimeError(f"Cannot change expression of evaluated value '{self.identifier}'")
        self.expression = expression
        return self

    def evaluate(self, context: ExecutionContext) -> EvaluationOutcome:
        """Evaluate the expression against ``context``.

        Repeat calls return the first outcome without invoking the
        expression again.
        """
        if self._outcome is not None:
            return self._outcome

        if self.expression is None:
            self._set_success(None)
            return self._outcome

        try:
            value = self.expression.invoke(context.namespace())
        except (Exception, SystemExit) as exc:
            self._set_failure(context, exc)
        else:
            self._set_success(value)
        return self._outcome

    def _set_success(self, value: Any) -> None:
        self.result = value
        self.error = False
        self.error_detail = None
        self.processed = True
        self._outcome = EvaluationOutcome(status=EvaluationStatus.SUCCESS, result=value)

    def _set_failure(self, context: ExecutionContext, exc: BaseException) -> None:
        identifier = self.identifier
        logger.warning("Evaluation of '{}' failed: {}: {}", identifier, type(exc).__name__, exc)
        message = f"Evaluation of '{identifier}' failed"
        try:
            detail = context.capture(message, identifier, exc)
        except Exception:
            logger.exception("Diagnostic capture failed for '{}'", identifier)
            detail = exc
        self.result = None
        self.error = True
        self.error_detail = detail
        self.processed = True
        self._outcome = EvaluationOutcome(status=EvaluationStatus.FAILED, error_detail=detail)


# ---------------------------------------------------------------------------
# DynamicValueList
# ---------------------------------------------------------------------------

class DynamicValueList:
    """Ordered sequence of dynamic values; insertion order is execution order."""

    def __init__(self, values: Optional[Iterable[DynamicValue]] = None) -> None:
        self._values: list[DynamicValue] = list(values or [])

    def append(self, value: DynamicValue) -> DynamicValue:
        self._values.append(value)
        return value

    def extend(self, values: Iterable[DynamicValue]) -> None:
        for value in values:
            self.append(value)

    def evaluate_all(self, context: ExecutionContext) -> list[EvaluationOutcome]:
        """Evaluate every member in order, regardless of earlier failures."""
        return [value.evaluate(context) for value in self._values]

    def evaluate_until_error(self, context: ExecutionContext) -> list[EvaluationOutcome]:
        """Evaluate members in order, stopping after the first failure."""
        outcomes: list[EvaluationOutcome] = []
        for value in self._values:
            outcome = value.evaluate(context)
            outcomes.append(outcome)
            if outcome.failed:
                break
        return outcomes

    def errors(self) -> list[DynamicValue]:
        return [value for value in self._values if value.error]

    def processed_count(self) -> int:
        return sum(1 for value in self._values if value.processed)

    def __iter__(self) -> Iterator[DynamicValue]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index: int) -> DynamicValue:
        return self._values[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"


# ---------------------------------------------------------------------------
# ConditionSet
# ---------------------------------------------------------------------------

def _is_truthy(value: DynamicValue) -> bool:
    try:
        return bool(value.result)
    except Exception as exc:
        logger.warning(
            "Condition '{}' returned a value with no truth value: {}",
            value.identifier,
            exc,
        )
        return False


class ConditionSet(DynamicValueList):
    """Dynamic values whose aggregate truth gates execution.

    ``passed`` starts true, so an empty set passes. Every condition is always
    evaluated so that all failing reasons are reported in one pass.
    """

    def __init__(self, values: Optional[Iterable[DynamicValue]] = None) -> None:
        super().__init__(values)
        self.passed = True

    def evaluate(self, context: ExecutionContext) -> bool:
        self.passed = True
        for value in self._values:
            value.evaluate(context)
            if value.error or not _is_truthy(value):
                self.passed = False
        return self.passed

    def failed(self) -> list[DynamicValue]:
        """Members that errored or produced a falsy result."""
        return [
            value for value in self._values
            if value.processed and (value.error or not _is_truthy(value))
        ]
