"""Administration primitives callable from task expressions.

These are ordinary functions; the task engine treats whatever they return or
raise like any other expression outcome.
"""

from __future__ import annotations

import getpass
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable, Optional, Union

from loguru import logger

from .constants import COMMAND_STDERR_TAIL_CHARS
from .errors import CommandFailed

_BYTES_PER_GB = 1024 ** 3


def disk_free_gb(path: Union[str, Path] = ".") -> float:
    """Free space on the volume holding ``path``, in GiB."""
    usage = shutil.disk_usage(str(path))
    return round(usage.free / _BYTES_PER_GB, 2)


def disk_total_gb(path: Union[str, Path] = ".") -> float:
    usage = shutil.disk_usage(str(path))
    return round(usage.total / _BYTES_PER_GB, 2)


def current_user() -> str:
    return getpass.getuser()


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def path_exists(path: Union[str, Path]) -> bool:
    return Path(path).expanduser().exists()


def run_command(
    command: Union[str, list[str]],
    cwd: Optional[Union[str, Path]] = None,
) -> str:
    """Run an external command and return its stdout.

    Args:
        command: Command line string (split with ``shlex``) or argv list.
        cwd: Optional working directory.

    Returns:
        The command's stdout with trailing whitespace stripped.

    Raises:
        CommandFailed: If the command exits non-zero.
    """
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    display = command if isinstance(command, str) else shlex.join(argv)
    logger.debug("Running command: {}", display)
    result = subprocess.run(
        argv,
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        stderr_tail = (result.stderr or "")[-COMMAND_STDERR_TAIL_CHARS:]
        raise CommandFailed(display, result.returncode, stderr_tail.strip())
    return (result.stdout or "").rstrip()


def log(message: Any) -> str:
    """Log ``message`` at INFO and return it as text."""
    text = str(message)
    logger.info("{}", text)
    return text


def default_primitives() -> dict[str, Callable[..., Any]]:
    return {
        "disk_free_gb": disk_free_gb,
        "disk_total_gb": disk_total_gb,
        "current_user": current_user,
        "env": env,
        "path_exists": path_exists,
        "run_command": run_command,
        "log": log,
    }
