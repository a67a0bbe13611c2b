"""Tasks, task lists and the pipeline runner.

A task evaluates its intro message, gates on its pre-conditions, runs its
steps fail-fast, checks its post-conditions and evaluates its exit message.
Faults never escape: each task's outcome is recorded on ``error`` /
``processed`` and the pipeline carries on with the next task.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from loguru import logger

from .context import ExecutionContext
from .dynamic_values import ConditionSet, DynamicValue, DynamicValueList


class TaskPhase(str, Enum):
    """Position of a task in its execution state machine."""

    CREATED = "created"
    INTRO_EVALUATED = "intro_evaluated"
    GATED = "gated"
    SKIPPED = "skipped"
    STEPS_RUNNING = "steps_running"
    POST_GATED = "post_gated"
    COMPLETED = "completed"


@dataclass
class Task:
    """Ordered unit of work: messages, gating conditions and steps."""
    name: str = ""
    intro_message: DynamicValue = field(default_factory=DynamicValue)
    pre_conditions: ConditionSet = field(default_factory=ConditionSet)
    task_steps: DynamicValueList = field(default_factory=DynamicValueList)
    post_conditions: ConditionSet = field(default_factory=ConditionSet)
    exit_message: DynamicValue = field(default_factory=DynamicValue)
    error: bool = False
    processed: bool = False
    phase: TaskPhase = TaskPhase.CREATED
    post_conditions_passed: Optional[bool] = None

    @classmethod
    def create(cls, name: str = "") -> "Task":
        return cls(
            name=name,
            intro_message=DynamicValue.create(f"{name}.intro" if name else None),
            exit_message=DynamicValue.create(f"{name}.exit" if name else None),
        )

    @property
    def skipped(self) -> bool:
        return self.phase == TaskPhase.SKIPPED

    def failed_step(self) -> Optional[DynamicValue]:
        for step in self.task_steps:
            if step.error:
                return step
        return None

    def execute(self, context: ExecutionContext) -> "Task":
        """Run the task once against ``context``.

        A second call is ignored; the task keeps the state of its first run.
        """
        if self.processed:
            logger.warning("Task '{}' already executed; ignoring repeat execute()", self.name)
            return self

        self.intro_message.evaluate(context)
        self.phase = TaskPhase.INTRO_EVALUATED
        if self.intro_message.processed and not self.intro_message.error and self.intro_message.result is not None:
            logger.info("[{}] {}", self.name, self.intro_message.result)

        if not self.pre_conditions.evaluate(context):
            self.error = False
            self.processed = True
            self.phase = TaskPhase.SKIPPED
            blocking = self.pre_conditions.failed()
            logger.info(
                "Task '{}' skipped: {} pre-condition(s) not met ({})",
                self.name,
                len(blocking),
                ", ".join(c.identifier for c in blocking),
            )
            return self
        self.phase = TaskPhase.GATED
        logger.debug("Task '{}' passed {} pre-condition(s)", self.name, len(self.pre_conditions))

        self.phase = TaskPhase.STEPS_RUNNING
        outcomes = self.task_steps.evaluate_until_error(context)
        self.error = any(outcome.failed for outcome in outcomes)
        if self.error:
            step = self.failed_step()
            logger.error(
                "Task '{}' failed at step '{}' ({} of {} steps run)",
                self.name,
                step.identifier if step else "?",
                len(outcomes),
                len(self.task_steps),
            )

        self.post_conditions_passed = self.post_conditions.evaluate(context)
        self.phase = TaskPhase.POST_GATED
        if not self.post_conditions_passed:
            logger.warning(
                "Task '{}' post-condition(s) not met: {}",
                self.name,
                ", ".join(c.identifier for c in self.post_conditions.failed()),
            )

        self.exit_message.evaluate(context)
        if self.exit_message.processed and not self.exit_message.error and self.exit_message.result is not None:
            logger.info("[{}] {}", self.name, self.exit_message.result)

        self.processed = True
        self.phase = TaskPhase.COMPLETED
        return self


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

@dataclass
class TaskReport:
    """Final state of one task after a run."""
    task: Task
    processed: bool
    error: bool
    skipped: bool = False
    post_conditions_passed: Optional[bool] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskReport":
        return cls(
            task=task,
            processed=task.processed,
            error=task.error,
            skipped=task.skipped,
            post_conditions_passed=task.post_conditions_passed,
        )

    @property
    def status(self) -> str:
        if not self.processed:
            return "pending"
        if self.skipped:
            return "skipped"
        if self.error:
            return "failed"
        if self.post_conditions_passed is False:
            return "warning"
        return "succeeded"

    def to_dict(self) -> dict[str, Any]:
        step = self.task.failed_step()
        return {
            "name": self.task.name,
            "status": self.status,
            "processed": self.processed,
            "error": self.error,
            "skipped": self.skipped,
            "post_conditions_passed": self.post_conditions_passed,
            "failed_step": step.identifier if step else None,
            "error_detail": str(step.error_detail) if step else None,
        }


@dataclass
class PipelineReport:
    """Ordered outcome of a task list run."""
    tasks: list[TaskReport] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not any(report.error for report in self.tasks)

    @property
    def failed_tasks(self) -> list[TaskReport]:
        return [report for report in self.tasks if report.error]

    @property
    def skipped_tasks(self) -> list[TaskReport]:
        return [report for report in self.tasks if report.skipped]

    @property
    def postcondition_warnings(self) -> list[TaskReport]:
        return [report for report in self.tasks if report.post_conditions_passed is False]

    def __iter__(self) -> Iterator[TaskReport]:
        return iter(self.tasks)

    def __len__(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "total": len(self.tasks),
            "failed": len(self.failed_tasks),
            "skipped": len(self.skipped_tasks),
            "tasks": [report.to_dict() for report in self.tasks],
        }


# ---------------------------------------------------------------------------
# TaskList
# ---------------------------------------------------------------------------

class TaskList:
    """Ordered pipeline of tasks."""

    def __init__(self, tasks: Optional[Iterable[Task]] = None) -> None:
        self._tasks: list[Task] = list(tasks or [])

    def append(self, task: Task) -> Task:
        self._tasks.append(task)
        return task

    def run(self, context: ExecutionContext) -> PipelineReport:
        return run_pipeline(self, context)

    def names(self) -> list[str]:
        return [task.name for task in self._tasks]

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __getitem__(self, index: int) -> Task:
        return self._tasks[index]


def run_pipeline(task_list: Iterable[Task], context: ExecutionContext) -> PipelineReport:
    """Execute every task in declared order.

    A failing task does not stop the tasks after it.
    """
    report = PipelineReport()
    for task in task_list:
        logger.debug("Executing task '{}'", task.name)
        task.execute(context)
        report.tasks.append(TaskReport.from_task(task))
    logger.info(
        "Pipeline finished: {} task(s), {} failed, {} skipped",
        len(report),
        len(report.failed_tasks),
        len(report.skipped_tasks),
    )
    return report
