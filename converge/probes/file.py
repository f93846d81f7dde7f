"""File system probes."""

import re
from pathlib import Path

from pydantic import field_validator, model_validator

from converge.collaborators.fetcher import sha256_of

from .base import Probe


class FileExistsProbe(Probe):
    """Holds when a file or directory exists at the path.

    Example:
        >>> FileExistsProbe(path="/etc/zshenv")
    """

    path: Path

    @field_validator("path", mode="after")
    @classmethod
    def expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    def check(self, ctx) -> bool:
        return self.path.exists()

    def describe(self) -> str:
        return self.description or f"{self.path} exists"


class FileContainsProbe(Probe):
    """Holds when file content matches a line, a pattern, or a checksum.

    Exactly one of ``line``, ``pattern`` or ``sha256`` must be given. A
    missing file never matches.

    Attributes:
        path: File to read
        line: Exact line (without trailing newline) that must be present
        pattern: Regular expression searched for in the content
        sha256: Expected SHA-256 checksum of the file

    Example:
        >>> FileContainsProbe(path="/etc/shells", line="/usr/local/bin/zsh")
        >>> FileContainsProbe(path="/etc/hosts", pattern=r"127\\.0\\.0\\.1\\s+localhost")
    """

    path: Path
    line: str | None = None
    pattern: str | None = None
    sha256: str | None = None

    @field_validator("path", mode="after")
    @classmethod
    def expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @model_validator(mode="after")
    def exactly_one_matcher(self):
        given = [m for m in (self.line, self.pattern, self.sha256) if m is not None]
        if len(given) != 1:
            raise ValueError(
                "FileContainsProbe requires exactly one of 'line', 'pattern' or 'sha256'"
            )
        return self

    def check(self, ctx) -> bool:
        if not self.path.is_file():
            return False

        if self.sha256 is not None:
            return sha256_of(self.path) == self.sha256.lower()

        content = self.path.read_text(errors="replace")
        if self.line is not None:
            return self.line in content.splitlines()
        return re.search(self.pattern, content) is not None

    def describe(self) -> str:
        if self.description:
            return self.description
        matcher = self.line or self.pattern or f"sha256 {self.sha256}"
        return f"{self.path} contains {matcher!r}"
