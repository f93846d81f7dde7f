"""Command-based probes.

Probe commands run with stdin closed, and a leading ``sudo`` is made
non-interactive, so checking a guard never asks for a password.
"""

from pathlib import Path

from pydantic import Field, field_validator

from converge.collaborators.process import as_argv, non_interactive

from .base import Probe


class CommandSucceedsProbe(Probe):
    """Holds when a command exits with status 0.

    Example:
        >>> # Is there a cached sudo timestamp? (never prompts)
        >>> CommandSucceedsProbe(command=["sudo", "-n", "true"])
        >>> CommandSucceedsProbe(command="pkgutil --pkg-info com.example.pkg")
    """

    command: list[str] = Field(min_length=1)
    cwd: Path | None = None

    @field_validator("command", mode="before")
    @classmethod
    def normalize_command(cls, value):
        return as_argv(value)

    def check(self, ctx) -> bool:
        result = ctx.runner.run(
            non_interactive(self.command), cwd=self.cwd, interactive=False
        )
        return result.ok

    def describe(self) -> str:
        return self.description or f"`{' '.join(self.command)}` succeeds"


class CommandOutputProbe(Probe):
    """Holds when the first line of a command's output equals ``expected``.

    A command that exits nonzero never matches.

    Example:
        >>> # Current PDF handler
        >>> CommandOutputProbe(command=["duti", "-x", "pdf"], expected="Skim.app")
    """

    command: list[str] = Field(min_length=1)
    expected: str

    @field_validator("command", mode="before")
    @classmethod
    def normalize_command(cls, value):
        return as_argv(value)

    def check(self, ctx) -> bool:
        result = ctx.runner.run(non_interactive(self.command), interactive=False)
        if not result.ok:
            return False
        lines = result.stdout.splitlines()
        return bool(lines) and lines[0].strip() == self.expected

    def describe(self) -> str:
        return self.description or f"`{' '.join(self.command)}` prints {self.expected!r}"
