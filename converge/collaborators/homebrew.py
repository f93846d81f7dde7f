"""Homebrew package prober/installer."""

import logging
from collections.abc import Sequence

from converge.errors import GuardEvaluationError

from .base import PackageManager, ProcessRunner
from .process import SubprocessRunner

logger = logging.getLogger(__name__)

# stderr fragments brew prints for a package that simply is not installed
_NOT_INSTALLED_MARKERS = ("No such keg", "is not installed", "No available")


class HomebrewPackageManager(PackageManager):
    """Installs formulae and casks with the ``brew`` command.

    Attributes:
        runner: Process runner used to invoke brew
        executable: brew executable name or path

    Example:
        >>> brew = HomebrewPackageManager()
        >>> brew.is_installed("zsh")
        False
        >>> brew.install("emacs", options=["--cocoa"])
        >>> brew.install("iterm2", cask=True)
    """

    def __init__(
        self, runner: ProcessRunner | None = None, executable: str = "brew"
    ):
        self.runner = runner or SubprocessRunner()
        self.executable = executable

    def _command(self, *args: str, cask: bool = False) -> list[str]:
        subcommand, *rest = args
        flags = ["--cask"] if cask else []
        return [self.executable, subcommand, *flags, *rest]

    def is_installed(self, name: str, cask: bool = False) -> bool:
        result = self.runner.run(
            self._command("list", "--versions", name, cask=cask),
            interactive=False,
        )
        if result.ok:
            return bool(result.stdout.strip())

        stderr = result.stderr.strip()
        if stderr and not any(marker in stderr for marker in _NOT_INSTALLED_MARKERS):
            raise GuardEvaluationError(
                name, f"brew could not query {name}: {stderr.splitlines()[-1]}"
            )
        return False

    def install(
        self, name: str, options: Sequence[str] = (), cask: bool = False
    ) -> None:
        kind = "cask" if cask else "formula"
        logger.info(f"Installing Homebrew {kind} {name}")
        self.runner.run(
            self._command("install", *options, name, cask=cask)
        ).check(name)
