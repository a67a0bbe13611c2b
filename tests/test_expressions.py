"""Tests for the expression compiler."""

from __future__ import annotations

import dataclasses

import pytest

from release_task_runner.errors import CompileError, EmptyExpressionError
from release_task_runner.expressions import Expression, ExpressionCompiler, compile_expression


class TestCompileExpression:
    def test_compiles_and_invokes(self) -> None:
        expr = compile_expression("1 + 2")
        assert isinstance(expr, Expression)
        assert expr.invoke({}) == 3

    def test_trims_source(self) -> None:
        expr = compile_expression("   x * 2  \n")
        assert expr.source == "x * 2"
        assert expr.invoke({"x": 21}) == 42

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_empty_text_raises(self, text) -> None:
        with pytest.raises(EmptyExpressionError):
            compile_expression(text)

    def test_empty_error_is_compile_error(self) -> None:
        with pytest.raises(CompileError):
            compile_expression("  ")

    def test_syntax_error_carries_source_and_diagnostic(self) -> None:
        with pytest.raises(CompileError) as excinfo:
            compile_expression("1 +")
        assert excinfo.value.source == "1 +"
        assert excinfo.value.diagnostic
        assert not isinstance(excinfo.value, EmptyExpressionError)

    def test_statements_are_rejected(self) -> None:
        with pytest.raises(CompileError):
            compile_expression("import os")

    def test_private_names_are_rejected(self) -> None:
        with pytest.raises(CompileError):
            compile_expression("_secret")

    def test_expression_is_immutable(self) -> None:
        expr = compile_expression("1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            expr.source = "2"  # type: ignore[misc]

    def test_reusable_against_different_namespaces(self) -> None:
        expr = compile_expression("name.upper()")
        assert expr.invoke({"name": "alpha"}) == "ALPHA"
        assert expr.invoke({"name": "beta"}) == "BETA"

    def test_same_text_twice_gives_equal_results(self) -> None:
        first = compile_expression("sorted(values)[-1] + offset")
        second = compile_expression("sorted(values)[-1] + offset")
        assert first is not second
        ns = {"values": [3, 9, 1], "offset": 1}
        assert first.invoke(dict(ns)) == second.invoke(dict(ns)) == 10

    def test_invocation_faults_propagate_from_invoke(self) -> None:
        expr = compile_expression("1 / 0")
        with pytest.raises(ZeroDivisionError):
            expr.invoke({})

    def test_builtins_available(self) -> None:
        expr = compile_expression("max(values) - min(values) + len(values)")
        assert expr.invoke({"values": [2, 5, 9]}) == 10

    def test_comprehension_and_subscript(self) -> None:
        expr = compile_expression("[item['n'] * 2 for item in items]")
        assert expr.invoke({"items": [{"n": 1}, {"n": 4}]}) == [2, 8]


class TestExpressionCompiler:
    def test_memoizes_identical_text(self) -> None:
        compiler = ExpressionCompiler()
        first = compiler.compile("a + 1")
        second = compiler.compile("  a + 1 ")
        assert first is second
        assert len(compiler) == 1

    def test_without_memo_compiles_fresh(self) -> None:
        compiler = ExpressionCompiler(memoize=False)
        assert compiler.compile("a") is not compiler.compile("a")
        assert len(compiler) == 0

    def test_propagates_compile_errors(self) -> None:
        compiler = ExpressionCompiler()
        with pytest.raises(CompileError):
            compiler.compile("(")


class TestCompileErrorText:
    def test_keeps_original_text(self) -> None:
        with pytest.raises(CompileError) as excinfo:
            compile_expression("  1 +  \n")
        assert excinfo.value.text == "  1 +  \n"
        assert excinfo.value.source == "1 +"

    def test_empty_keeps_original_text(self) -> None:
        with pytest.raises(EmptyExpressionError) as excinfo:
            compile_expression(" \t ")
        assert excinfo.value.text == " \t "
        assert excinfo.value.source == ""
