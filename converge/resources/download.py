"""File download resource for fonts, widgets, installers and other assets."""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import field_validator, model_validator

from converge.collaborators.fetcher import sha256_of
from converge.errors import ActionExecutionError

from .base import Resource, ResourceKind
from .utils import mode_matches, parse_mode, validate_mode

_SHA256 = re.compile(r"^[0-9a-fA-F]{64}$")


class FileDownloadResource(Resource):
    """File download resource - ensures a remote file is present at a path.

    The guard holds when the file exists and, if a checksum is declared, its
    SHA-256 matches. The fetch itself verifies the checksum before moving
    the file into place, so a failed download leaves nothing behind.

    Usage:
        FileDownloadResource(
            name="download Ubuntu fonts",
            url="http://font.ubuntu.com/download/ubuntu-font-family-0.83.zip",
            path="~/Library/Caches/converge/ubuntu-font-family-0.83.zip",
            checksum="456d7d42797febd0d7d4cf1b782a2e03680bb4a5ee43cc9d06bda172bac05b42",
            notifies=["install Ubuntu fonts"],
        )

    Attributes:
        url: Source URL
        path: Destination file path (``~`` is expanded)
        checksum: Expected SHA-256 hex digest (optional)
        mode: Permissions as an octal string (optional)
    """

    kind = ResourceKind.FILE_DOWNLOAD

    url: str
    path: Path
    checksum: str | None = None
    mode: str | None = None

    @model_validator(mode="before")
    @classmethod
    def name_from_path(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name") and data.get("path"):
            data = {**data, "name": str(data["path"])}
        return data

    @field_validator("path", mode="after")
    @classmethod
    def expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("checksum", mode="after")
    @classmethod
    def validate_checksum(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not _SHA256.match(value):
            raise ValueError(f"checksum must be a SHA-256 hex digest, got {value!r}")
        return value.lower()

    @field_validator("mode", mode="after")
    @classmethod
    def check_mode(cls, value: str | None) -> str | None:
        return validate_mode(value)

    def is_satisfied(self, ctx) -> bool:
        if not self.path.is_file():
            return False
        if self.checksum is not None and sha256_of(self.path) != self.checksum:
            return False
        return mode_matches(self.path, self.mode)

    def apply(self, ctx) -> None:
        ctx.fetcher.fetch(self.url, self.path, self.checksum)
        if self.mode is not None:
            try:
                os.chmod(self.path, parse_mode(self.mode))
            except OSError as e:
                raise ActionExecutionError(
                    self.name, f"could not set mode {self.mode} on {self.path}: {e}"
                ) from e

    def summary(self) -> str:
        return self.description or f"{self.path} downloaded from {self.url}"
