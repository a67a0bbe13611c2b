from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger
from rich.console import Console

from .config import (
    get_fail_on_postcondition_config,
    get_log_level_config,
    get_tasks_file_config,
    get_variables_config,
    load_runner_config,
)
from .constants import EXIT_DEFINITION_ERROR, EXIT_OK, EXIT_TASK_FAILED
from .context import ExecutionContext
from .errors import TaskDefinitionError
from .loader import load_task_list
from .logging_utils import configure_logging
from .primitives import default_primitives
from .reporting import render_report, summarize_report


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _parse_vars(pairs: list[str]) -> dict[str, Any]:
    """Parse ``name=value`` pairs; values are read as YAML scalars."""
    parsed: dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Invalid --var '{pair}', expected NAME=VALUE")
        try:
            parsed[name] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            parsed[name] = raw
    return parsed


def _load(args: argparse.Namespace) -> tuple[Any, dict[str, Any], dict[str, Any]]:
    project_dir = _resolve_project_dir(args.project_dir)
    config, err = load_runner_config(project_dir)
    if err:
        raise TaskDefinitionError(f"Invalid runner config: {err}")
    configure_logging(args.log_level or get_log_level_config(config))

    tasks_path = Path(args.tasks_file or get_tasks_file_config(config)).expanduser()
    if not tasks_path.is_absolute():
        tasks_path = project_dir / tasks_path
    task_list, file_vars = load_task_list(tasks_path)
    return task_list, file_vars, config


def _run(args: argparse.Namespace) -> int:
    try:
        cli_vars = _parse_vars(list(args.var or []))
        task_list, file_vars, config = _load(args)
    except (TaskDefinitionError, ValueError) as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_DEFINITION_ERROR

    variables: dict[str, Any] = {}
    variables.update(file_vars)
    variables.update(get_variables_config(config))
    variables.update(cli_vars)
    context = ExecutionContext(variables=variables, primitives=default_primitives())

    logger.info("Running {} task(s)", len(task_list))
    report = task_list.run(context)

    if args.json:
        sys.stdout.write(json.dumps(summarize_report(report), indent=2, default=str) + "\n")
    else:
        render_report(report, Console(), verbose=bool(args.verbose))

    if not report.succeeded:
        return EXIT_TASK_FAILED
    if get_fail_on_postcondition_config(config) and report.postcondition_warnings:
        return EXIT_TASK_FAILED
    return EXIT_OK


def _check(args: argparse.Namespace) -> int:
    try:
        task_list, _, _ = _load(args)
    except TaskDefinitionError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_DEFINITION_ERROR
    payload = {"valid": True, "tasks": task_list.names()}
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    return EXIT_OK


def _add_common_arguments(parser: argparse.ArgumentParser, default: Any) -> None:
    parser.add_argument("--project-dir", default=default, help="Directory holding tasks and config (default: current working directory)")
    parser.add_argument("--tasks-file", default=default, help="Task definition file (default: tasks.yaml or config tasks_file)")
    parser.add_argument("--log-level", default=default, help="Log level (default: config log_level or INFO)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Release Task Runner - run ordered build/release tasks")
    _add_common_arguments(parser, None)

    # accepted after the subcommand too; SUPPRESS keeps a value given before it
    common = argparse.ArgumentParser(add_help=False)
    _add_common_arguments(common, argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", parents=[common], help="Run every task in order")
    run.add_argument("--var", action="append", default=[], metavar="NAME=VALUE", help="Bind a variable (repeatable)")
    run.add_argument("--json", action="store_true", help="Print the report as JSON")
    run.add_argument("--verbose", action="store_true", help="Show diagnostics for failing steps")
    run.set_defaults(func=_run)

    check = subparsers.add_parser("check", parents=[common], help="Compile task definitions without running them")
    check.set_defaults(func=_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
