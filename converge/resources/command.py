"""Command resource for steps outside the other resource kinds."""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator

from converge.collaborators.process import as_argv
from converge.probes.base import Probe

from .base import Resource, ResourceKind


class CommandResource(Resource):
    """Command resource - runs a command unless its guards say it is done.

    The guard holds when any of these is true:
    - ``creates`` names a path that exists
    - any ``not_if`` probe holds
    - any ``only_if`` probe does not hold

    A command declared without any guard always runs; pair it with
    ``notify_only=True`` for commands that should only follow another
    resource (unpacking an archive after it downloads, for instance).

    Usage:
        CommandResource(
            name="set zsh as default shell",
            command=["chsh", "-s", "/usr/local/bin/zsh"],
            not_if=LoginShellProbe(shell="/usr/local/bin/zsh"),
            depends_on=["zsh"],
        )

    Attributes:
        command: Argument vector; a string is run with ``/bin/sh -c``
        cwd: Working directory
        env: Extra environment variables
        creates: Path whose existence means the command already ran
        not_if: Probes that, when any holds, skip the command
        only_if: Probes that must all hold for the command to run
    """

    kind = ResourceKind.COMMAND_EXECUTED

    command: list[str] = Field(min_length=1)
    cwd: Path | None = None
    env: dict[str, str] = Field(default_factory=dict)
    creates: Path | None = None
    not_if: list[Probe] = Field(default_factory=list)
    only_if: list[Probe] = Field(default_factory=list)

    @field_validator("command", mode="before")
    @classmethod
    def normalize_command(cls, value: Any) -> Any:
        return as_argv(value)

    @field_validator("not_if", "only_if", mode="before")
    @classmethod
    def wrap_single_probe(cls, value: Any) -> Any:
        if isinstance(value, Probe):
            return [value]
        return value

    @field_validator("cwd", "creates", mode="after")
    @classmethod
    def expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    def is_satisfied(self, ctx) -> bool:
        if self.creates is not None and self.creates.exists():
            return True
        if any(probe.check(ctx) for probe in self.not_if):
            return True
        if self.only_if and not all(probe.check(ctx) for probe in self.only_if):
            return True
        return False

    def apply(self, ctx) -> None:
        ctx.runner.run(self.command, cwd=self.cwd, env=self.env or None).check(
            self.name
        )

    def summary(self) -> str:
        return self.description or f"run `{' '.join(self.command)}`"
