"""Provide the public `release_task_runner` package exports."""

from __future__ import annotations

from .context import ExecutionContext
from .dynamic_values import (
    ConditionSet,
    DynamicValue,
    DynamicValueList,
    EvaluationOutcome,
    EvaluationStatus,
)
from .errors import CompileError, EmptyExpressionError, TaskDefinitionError
from .expressions import Expression, ExpressionCompiler, compile_expression
from .loader import TaskBuilder, build_task, load_task_list
from .task import PipelineReport, Task, TaskList, TaskPhase, TaskReport, run_pipeline
from .transfer import TransferVariable, TransferVariableList

__all__ = [
    "CompileError",
    "ConditionSet",
    "DynamicValue",
    "DynamicValueList",
    "EmptyExpressionError",
    "EvaluationOutcome",
    "EvaluationStatus",
    "ExecutionContext",
    "Expression",
    "ExpressionCompiler",
    "PipelineReport",
    "Task",
    "TaskBuilder",
    "TaskDefinitionError",
    "TaskList",
    "TaskPhase",
    "TaskReport",
    "TransferVariable",
    "TransferVariableList",
    "build_task",
    "compile_expression",
    "load_task_list",
    "run_pipeline",
]
