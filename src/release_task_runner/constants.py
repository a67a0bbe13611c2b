"""Shared constants for release-task-runner."""

STATE_DIR_NAME = ".release_tasks"
CONFIG_FILE = "config.yaml"
DEFAULT_TASKS_FILE = "tasks.yaml"

DEFAULT_LOG_LEVEL = "INFO"

EXPRESSION_FILENAME = "<task-expression>"

# Error types recorded on diagnostic records
ERROR_TYPE_EVALUATION_FAULT = "evaluation_fault"

# Task definition keys
TASK_FIELD_INTRO = "intro"
TASK_FIELD_PRE_CONDITIONS = "pre_conditions"
TASK_FIELD_STEPS = "steps"
TASK_FIELD_POST_CONDITIONS = "post_conditions"
TASK_FIELD_EXIT = "exit"

# Exit codes for the CLI
EXIT_OK = 0
EXIT_TASK_FAILED = 1
EXIT_DEFINITION_ERROR = 2

# Characters of command stderr kept on a CommandFailed fault
COMMAND_STDERR_TAIL_CHARS = 2000
