"""Converge collaborators - the external interfaces guards and actions use.

Example:
    >>> from converge.collaborators import Collaborators
    >>> ctx = Collaborators.default()
    >>> ctx.packages.is_installed("zsh")
"""

from dataclasses import dataclass, field

from .base import (
    CommandResult,
    FileFetcher,
    PackageManager,
    PreferenceStore,
    ProcessRunner,
)
from .defaults import DefaultsPreferenceStore
from .fetcher import HttpFileFetcher, sha256_of
from .homebrew import HomebrewPackageManager
from .process import SubprocessRunner, as_argv, non_interactive


@dataclass
class Collaborators:
    """One of each external interface, passed explicitly to guards and actions."""

    runner: ProcessRunner = field(default_factory=SubprocessRunner)
    packages: PackageManager = field(default_factory=HomebrewPackageManager)
    fetcher: FileFetcher = field(default_factory=HttpFileFetcher)
    preferences: PreferenceStore = field(default_factory=DefaultsPreferenceStore)

    @classmethod
    def default(cls) -> "Collaborators":
        """Build the real macOS collaborators from settings."""
        from converge.settings import get_settings

        settings = get_settings()
        runner = SubprocessRunner()
        return cls(
            runner=runner,
            packages=HomebrewPackageManager(
                runner, executable=settings.brew_executable
            ),
            fetcher=HttpFileFetcher(
                timeout_seconds=settings.fetch_timeout_seconds,
                max_retries=settings.fetch_max_retries,
            ),
            preferences=DefaultsPreferenceStore(
                runner, executable=settings.defaults_executable
            ),
        )

    def close(self) -> None:
        """Release network connections held by the collaborators."""
        self.fetcher.close()


__all__ = [
    "Collaborators",
    "CommandResult",
    "DefaultsPreferenceStore",
    "FileFetcher",
    "HomebrewPackageManager",
    "HttpFileFetcher",
    "PackageManager",
    "PreferenceStore",
    "ProcessRunner",
    "SubprocessRunner",
    "as_argv",
    "non_interactive",
    "sha256_of",
]
