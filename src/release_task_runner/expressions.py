"""Compile task expressions into reusable, invocable units.

Expressions are single Python expressions compiled with RestrictedPython in
``eval`` mode. A compiled :class:`Expression` holds no run state: the same
instance can be invoked any number of times against different namespaces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import CodeType
from typing import Any, Mapping, Optional

from loguru import logger
from RestrictedPython import compile_restricted_eval, safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    safer_getattr,
)

from .constants import EXPRESSION_FILENAME
from .errors import CompileError, EmptyExpressionError


def _apply(func: Any, *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


def _create_safe_builtins() -> dict[str, Any]:
    builtins = dict(safe_builtins)
    builtins.update({
        "all": all,
        "any": any,
        "dict": dict,
        "enumerate": enumerate,
        "list": list,
        "max": max,
        "min": min,
        "set": set,
        "sum": sum,
    })
    return builtins


_SAFE_BUILTINS = _create_safe_builtins()


@dataclass(frozen=True)
class Expression:
    """Immutable compiled form of an expression's source text."""

    source: str
    code: CodeType = field(repr=False, compare=False)

    def invoke(self, namespace: Mapping[str, Any]) -> Any:
        """Evaluate the expression against ``namespace``.

        Exceptions raised by the expression body propagate to the caller;
        :meth:`DynamicValue.evaluate` is the layer that converts them to state.
        """
        restricted_globals: dict[str, Any] = dict(namespace)
        # guards are applied last so context names cannot replace them
        restricted_globals.update({
            "__builtins__": _SAFE_BUILTINS,
            "_getattr_": safer_getattr,
            "_getitem_": default_guarded_getitem,
            "_getiter_": default_guarded_getiter,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_write_": full_write_guard,
            "_apply_": _apply,
        })
        return eval(self.code, restricted_globals)


def compile_expression(text: Optional[str]) -> Expression:
    """Compile expression text.

    Args:
        text: Source text of a single Python expression.

    Returns:
        The compiled :class:`Expression`.

    Raises:
        EmptyExpressionError: If the text is empty or whitespace only.
        CompileError: If the text fails to parse or uses a disallowed construct.
    """
    source = (text or "").strip()
    if not source:
        raise EmptyExpressionError(text or "")

    result = compile_restricted_eval(source, filename=EXPRESSION_FILENAME)
    if result.errors or result.code is None:
        diagnostic = "; ".join(result.errors) or "no code produced"
        logger.debug("Compilation failed for expression {!r}: {}", source, diagnostic)
        raise CompileError(source, diagnostic, text=text)
    return Expression(source=source, code=result.code)


class ExpressionCompiler:
    """Compile expressions, optionally reusing results for repeated text.

    Compiled expressions are immutable, so sharing one instance between
    several dynamic values is safe.
    """

    def __init__(self, memoize: bool = True) -> None:
        self.memoize = memoize
        self._cache: dict[str, Expression] = {}

    def compile(self, text: Optional[str]) -> Expression:
        source = (text or "").strip()
        if self.memoize and source in self._cache:
            return self._cache[source]
        expression = compile_expression(text)
        if self.memoize:
            self._cache[source] = expression
        return expression

    def __len__(self) -> int:
        return len(self._cache)
