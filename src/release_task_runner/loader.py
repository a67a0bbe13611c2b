"""Build tasks programmatically or from a YAML task-definition file.

A task file looks like::

    variables:
      version: "1.4.0"
    tasks:
      - name: build
        intro: "'Building ' + version"
        pre_conditions:
          - "disk_free_gb('.') > 1"
        steps:
          - "set_var('artifact', 'app-' + version + '.zip')"
          - "transfer.append('built', artifact)"
        post_conditions:
          - "'built' in transfer"
        exit: "'Build finished'"

Every string is compiled up front, so a typo fails the load rather than the
run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import (
    TASK_FIELD_EXIT,
    TASK_FIELD_INTRO,
    TASK_FIELD_POST_CONDITIONS,
    TASK_FIELD_PRE_CONDITIONS,
    TASK_FIELD_STEPS,
)
from .dynamic_values import DynamicValue
from .errors import CompileError, TaskDefinitionError
from .expressions import ExpressionCompiler
from .io_utils import _load_data_with_error
from .task import Task, TaskList


# ---------------------------------------------------------------------------
# File schema
# ---------------------------------------------------------------------------

class TaskDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    intro: Optional[str] = None
    pre_conditions: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    post_conditions: list[str] = Field(default_factory=list)
    exit: Optional[str] = None


class TaskFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    variables: dict[str, Any] = Field(default_factory=dict)
    tasks: list[TaskDefinition] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class TaskBuilder:
    """Populate a freshly created :class:`Task` from expression text."""

    def __init__(self, name: str, compiler: Optional[ExpressionCompiler] = None) -> None:
        self.name = name
        self.compiler = compiler or ExpressionCompiler()
        self._task = Task.create(name)

    def _compile(self, text: str, field_name: str):
        try:
            return self.compiler.compile(text)
        except CompileError as exc:
            raise TaskDefinitionError(
                exc.diagnostic,
                task_name=self.name,
                field=field_name,
                original_error=exc,
            ) from exc

    def _value(self, text: str, field_name: str) -> DynamicValue:
        value = DynamicValue.create(f"{self.name}.{field_name}")
        value.set_expression(self._compile(text, field_name))
        return value

    def intro(self, text: str) -> "TaskBuilder":
        self._task.intro_message.set_expression(self._compile(text, TASK_FIELD_INTRO))
        return self

    def exit(self, text: str) -> "TaskBuilder":
        self._task.exit_message.set_expression(self._compile(text, TASK_FIELD_EXIT))
        return self

    def pre_condition(self, text: str) -> "TaskBuilder":
        index = len(self._task.pre_conditions)
        self._task.pre_conditions.append(self._value(text, f"{TASK_FIELD_PRE_CONDITIONS}[{index}]"))
        return self

    def step(self, text: str) -> "TaskBuilder":
        index = len(self._task.task_steps)
        self._task.task_steps.append(self._value(text, f"{TASK_FIELD_STEPS}[{index}]"))
        return self

    def post_condition(self, text: str) -> "TaskBuilder":
        index = len(self._task.post_conditions)
        self._task.post_conditions.append(self._value(text, f"{TASK_FIELD_POST_CONDITIONS}[{index}]"))
        return self

    def build(self) -> Task:
        return self._task


def build_task(
    name: str,
    *,
    intro: Optional[str] = None,
    pre_conditions: Iterable[str] = (),
    steps: Iterable[str] = (),
    post_conditions: Iterable[str] = (),
    exit: Optional[str] = None,
    compiler: Optional[ExpressionCompiler] = None,
) -> Task:
    builder = TaskBuilder(name, compiler)
    if intro is not None:
        builder.intro(intro)
    for text in pre_conditions:
        builder.pre_condition(text)
    for text in steps:
        builder.step(text)
    for text in post_conditions:
        builder.post_condition(text)
    if exit is not None:
        builder.exit(exit)
    return builder.build()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def parse_task_file(data: dict[str, Any], source: str = "<tasks>") -> TaskFile:
    """Validate raw task-file data.

    Raises:
        TaskDefinitionError: If the structure is invalid or task names repeat.
    """
    try:
        parsed = TaskFile.model_validate(data)
    except ValidationError as exc:
        raise TaskDefinitionError(f"{source}: {exc}", original_error=exc) from exc

    seen: set[str] = set()
    for definition in parsed.tasks:
        if not definition.name.strip():
            raise TaskDefinitionError(f"{source}: task name must not be empty")
        if definition.name in seen:
            raise TaskDefinitionError(f"{source}: duplicate task name", task_name=definition.name)
        seen.add(definition.name)
    return parsed


def build_task_list(
    definitions: Iterable[TaskDefinition],
    compiler: Optional[ExpressionCompiler] = None,
) -> TaskList:
    compiler = compiler or ExpressionCompiler()
    task_list = TaskList()
    for definition in definitions:
        task_list.append(
            build_task(
                definition.name,
                intro=definition.intro,
                pre_conditions=definition.pre_conditions,
                steps=definition.steps,
                post_conditions=definition.post_conditions,
                exit=definition.exit,
                compiler=compiler,
            )
        )
    return task_list


def load_task_file(path: Path) -> TaskFile:
    if not path.exists():
        raise TaskDefinitionError(f"Task file not found: {path}")
    data, err = _load_data_with_error(path, {})
    if err:
        raise TaskDefinitionError(err)
    return parse_task_file(data, source=path.name)


def load_task_list(
    path: Path,
    compiler: Optional[ExpressionCompiler] = None,
) -> tuple[TaskList, dict[str, Any]]:
    """Load and compile a task-definition file.

    Args:
        path: YAML (or JSON) task file.
        compiler: Optional shared compiler.

    Returns:
        A tuple of `(task_list, variables)` where `variables` are the file's
        default execution-context bindings.

    Raises:
        TaskDefinitionError: If the file is missing, malformed, or contains an
            expression that does not compile.
    """
    task_file = load_task_file(path)
    task_list = build_task_list(task_file.tasks, compiler)
    logger.debug("Loaded {} task(s) from {}", len(task_list), path)
    return task_list, dict(task_file.variables)
