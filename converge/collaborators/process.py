"""Subprocess-backed process runner."""

import logging
import os
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from converge.errors import ActionExecutionError

from .base import CommandResult, ProcessRunner

logger = logging.getLogger(__name__)


def as_argv(command):
    """Normalize a command declaration into an argument vector.

    A string is run through ``/bin/sh -c``; a sequence is used as-is.

    Example:
        >>> as_argv("unzip -o '/tmp/font.zip'")
        ['/bin/sh', '-c', "unzip -o '/tmp/font.zip'"]
    """
    if isinstance(command, str):
        return ["/bin/sh", "-c", command]
    if isinstance(command, (list, tuple)):
        return [str(arg) for arg in command]
    return command


def non_interactive(argv: Sequence[str]) -> list[str]:
    """Make a sudo invocation fail instead of prompting for a password.

    Args:
        argv: Argument vector

    Returns:
        argv with ``-n`` inserted after a leading ``sudo`` if missing

    Example:
        >>> non_interactive(["sudo", "test", "-f", "/etc/zshenv"])
        ['sudo', '-n', 'test', '-f', '/etc/zshenv']
    """
    argv = [str(arg) for arg in argv]
    if argv and os.path.basename(argv[0]) == "sudo" and "-n" not in argv[1:2]:
        return [argv[0], "-n", *argv[1:]]
    return argv


class SubprocessRunner(ProcessRunner):
    """Runs commands with ``subprocess.run``, capturing output as text."""

    def run(
        self,
        argv: Sequence[str],
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        interactive: bool = True,
    ) -> CommandResult:
        argv = [str(arg) for arg in argv]
        if not argv:
            raise ActionExecutionError("<empty command>", "no command given")

        full_env = {**os.environ, **env} if env else None
        logger.debug(f"Running: {shlex.join(argv)}" + (f" (cwd={cwd})" if cwd else ""))

        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                env=full_env,
                stdin=None if interactive else subprocess.DEVNULL,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ActionExecutionError(
                argv[0], f"could not start `{shlex.join(argv)}`: {e}"
            ) from e

        logger.debug(f"Exit status {completed.returncode}: {shlex.join(argv)}")
        return CommandResult(
            argv=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
