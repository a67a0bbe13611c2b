"""Load optional runner configuration from `.release_tasks/config.yaml`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .constants import CONFIG_FILE, DEFAULT_LOG_LEVEL, DEFAULT_TASKS_FILE, STATE_DIR_NAME
from .io_utils import _load_data_with_error

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def load_runner_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional runner config file.

    Args:
        project_dir: Directory holding the task definitions.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    project_dir = project_dir.resolve()
    path = project_dir / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def get_log_level_config(config: dict[str, Any]) -> str:
    """Return the configured log level, or the default when unset or invalid."""
    raw = config.get("log_level")
    if isinstance(raw, str) and raw.upper() in VALID_LOG_LEVELS:
        return raw.upper()
    return DEFAULT_LOG_LEVEL


def get_tasks_file_config(config: dict[str, Any]) -> str:
    raw = config.get("tasks_file")
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return DEFAULT_TASKS_FILE


def get_variables_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the initial execution-context variables.

    Args:
        config: Runner configuration dictionary.

    Returns:
        The `variables` mapping with string keys, or an empty dict if not present.
    """
    raw = config.get("variables")
    if not isinstance(raw, dict):
        return {}
    return {str(key): value for key, value in raw.items()}


def get_fail_on_postcondition_config(config: dict[str, Any]) -> bool:
    return bool(config.get("fail_on_postcondition", False))
