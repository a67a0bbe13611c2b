"""Tests for task definition loading and the task builder."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from release_task_runner.context import ExecutionContext
from release_task_runner.errors import CompileError, TaskDefinitionError
from release_task_runner.expressions import ExpressionCompiler
from release_task_runner.loader import (
    TaskBuilder,
    build_task,
    load_task_list,
    parse_task_file,
)


def _write(path: Path, content: str) -> Path:
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


class TestTaskBuilder:
    def test_names_values_by_position(self) -> None:
        task = (
            TaskBuilder("build")
            .intro("'start'")
            .pre_condition("True")
            .step("1")
            .step("2")
            .post_condition("True")
            .exit("'end'")
            .build()
        )
        assert task.intro_message.identifier == "build.intro"
        assert task.pre_conditions[0].identifier == "build.pre_conditions[0]"
        assert [s.identifier for s in task.task_steps] == ["build.steps[0]", "build.steps[1]"]
        assert task.post_conditions[0].identifier == "build.post_conditions[0]"
        assert task.exit_message.identifier == "build.exit"

    def test_compile_error_names_task_and_field(self) -> None:
        with pytest.raises(TaskDefinitionError) as excinfo:
            build_task("broken", steps=["1", "1 +"])
        err = excinfo.value
        assert err.task_name == "broken"
        assert err.field == "steps[1]"
        assert isinstance(err.original_error, CompileError)
        assert "broken" in str(err)

    def test_empty_expression_rejected(self) -> None:
        with pytest.raises(TaskDefinitionError):
            build_task("blank", pre_conditions=["   "])

    def test_shared_compiler_reuses_expressions(self) -> None:
        compiler = ExpressionCompiler()
        first = build_task("a", steps=["x + 1"], compiler=compiler)
        second = build_task("b", steps=["x + 1"], compiler=compiler)
        assert first.task_steps[0].expression is second.task_steps[0].expression
        assert first.task_steps[0] is not second.task_steps[0]


class TestParseTaskFile:
    def test_rejects_unknown_keys(self) -> None:
        with pytest.raises(TaskDefinitionError):
            parse_task_file({"tasks": [{"name": "x", "stepz": ["1"]}]})

    def test_rejects_missing_name(self) -> None:
        with pytest.raises(TaskDefinitionError):
            parse_task_file({"tasks": [{"steps": ["1"]}]})

    def test_rejects_blank_name(self) -> None:
        with pytest.raises(TaskDefinitionError):
            parse_task_file({"tasks": [{"name": "  "}]})

    def test_rejects_duplicate_names(self) -> None:
        with pytest.raises(TaskDefinitionError) as excinfo:
            parse_task_file({"tasks": [{"name": "x"}, {"name": "x"}]})
        assert excinfo.value.task_name == "x"

    def test_defaults(self) -> None:
        parsed = parse_task_file({"tasks": [{"name": "x"}]})
        definition = parsed.tasks[0]
        assert definition.intro is None
        assert definition.steps == []
        assert parsed.variables == {}


class TestLoadTaskList:
    def test_load_and_run(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "tasks.yaml",
            """
            variables:
              version: "2.0"
            tasks:
              - name: build
                intro: "'Building ' + version"
                steps:
                  - "set_var('artifact', 'app-' + version)"
                  - "transfer.append('built', artifact)"
                post_conditions:
                  - "'built' in transfer"
              - name: publish
                pre_conditions:
                  - "transfer.get('built')"
                steps:
                  - "set_var('published', transfer.lookup('built'))"
            """,
        )
        task_list, variables = load_task_list(path)
        assert task_list.names() == ["build", "publish"]
        assert variables == {"version": "2.0"}

        context = ExecutionContext(variables=variables)
        report = task_list.run(context)
        assert report.succeeded is True
        assert context.variables["published"] == "app-2.0"
        assert task_list[0].intro_message.result == "Building 2.0"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(TaskDefinitionError, match="not found"):
            load_task_list(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.yaml"
        path.write_text("tasks: [unclosed", encoding="utf-8")
        with pytest.raises(TaskDefinitionError, match="YAMLError"):
            load_task_list(path)

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(TaskDefinitionError, match="expected object"):
            load_task_list(path)

    def test_bad_expression_in_file(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "tasks.yaml",
            """
            tasks:
              - name: deploy
                steps:
                  - "run_command('deploy'"
            """,
        )
        with pytest.raises(TaskDefinitionError) as excinfo:
            load_task_list(path)
        assert excinfo.value.task_name == "deploy"
        assert excinfo.value.field == "steps[0]"

    def test_json_task_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.json"
        path.write_text('{"tasks": [{"name": "only", "steps": ["1 + 1"]}]}', encoding="utf-8")
        task_list, _ = load_task_list(path)
        assert task_list.names() == ["only"]
