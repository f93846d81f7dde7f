"""Base collaborator interfaces for Converge.

Guards and actions reach the outside world only through these interfaces.
Each base method raises NotImplementedError; concrete classes live next to
this module and tests substitute in-memory fakes.
"""

import logging
import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel

from converge.errors import ActionExecutionError

if TYPE_CHECKING:
    from converge.values import TypedValue

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Result of running an external command.

    Attributes:
        argv: The argument vector that was executed
        returncode: Process exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self, subject: str | None = None) -> "CommandResult":
        """Raise if the command exited nonzero.

        Args:
            subject: Name attached to the error (defaults to the executable)

        Returns:
            Self, for chaining

        Raises:
            ActionExecutionError: If returncode is not 0
        """
        if self.ok:
            return self
        detail = self.stderr.strip() or self.stdout.strip()
        reason = f"`{shlex.join(self.argv)}` exited with status {self.returncode}"
        if detail:
            reason = f"{reason}: {detail.splitlines()[-1]}"
        raise ActionExecutionError(subject or self.argv[0], reason)


class ProcessRunner:
    """Runs commands outside the other collaborator abstractions."""

    def run(
        self,
        argv: Sequence[str],
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        interactive: bool = True,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            argv: Argument vector
            cwd: Working directory
            env: Extra environment variables
            interactive: When False, stdin is closed so nothing can prompt

        Returns:
            CommandResult; a nonzero exit is returned, not raised

        Raises:
            ActionExecutionError: If the executable cannot be started
        """
        raise NotImplementedError("Subclasses must implement run()")


class PackageManager:
    """Package prober/installer."""

    def is_installed(self, name: str, cask: bool = False) -> bool:
        raise NotImplementedError("Subclasses must implement is_installed()")

    def install(
        self, name: str, options: Sequence[str] = (), cask: bool = False
    ) -> None:
        raise NotImplementedError("Subclasses must implement install()")


class FileFetcher:
    """Downloads a URL to a path.

    Implementations must verify the checksum before considering a fetch
    successful and must never leave a partial file at the destination.
    """

    def fetch(self, url: str, dest: Path, checksum: str | None = None) -> None:
        raise NotImplementedError("Subclasses must implement fetch()")

    def close(self) -> None:
        """Release connections held by the fetcher (no-op by default)."""


class PreferenceStore:
    """Per-application key/value settings store."""

    def get(self, domain: str, key: str) -> "TypedValue | None":
        raise NotImplementedError("Subclasses must implement get()")

    def set(self, domain: str, key: str, value: "TypedValue") -> None:
        raise NotImplementedError("Subclasses must implement set()")
