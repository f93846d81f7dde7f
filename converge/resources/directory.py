"""Directory resource for ensuring directories exist."""

import os
from pathlib import Path
from typing import Any

from pydantic import field_validator, model_validator

from converge.errors import ActionExecutionError

from .base import Resource, ResourceKind
from .utils import mode_matches, parse_mode, validate_mode


class DirectoryResource(Resource):
    """Directory resource - ensures a directory exists.

    Usage:
        DirectoryResource(path="~/Pictures/Backgrounds")
        DirectoryResource(name="personal dir", path="~/src/personal", mode="700")

    Attributes:
        path: Directory path (``~`` is expanded)
        mode: Permissions as an octal string (optional)
        recursive: Create missing parent directories (default: True)
    """

    kind = ResourceKind.DIRECTORY_EXISTS

    path: Path
    mode: str | None = None
    recursive: bool = True

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

    @field_validator("mode", mode="after")
    @classmethod
    def check_mode(cls, value: str | None) -> str | None:
        return validate_mode(value)

    def is_satisfied(self, ctx) -> bool:
        return self.path.is_dir() and mode_matches(self.path, self.mode)

    def apply(self, ctx) -> None:
        try:
            self.path.mkdir(parents=self.recursive, exist_ok=True)
            if self.mode is not None:
                os.chmod(self.path, parse_mode(self.mode))
        except OSError as e:
            raise ActionExecutionError(
                self.name, f"could not create directory {self.path}: {e}"
            ) from e

    def summary(self) -> str:
        if self.description:
            return self.description
        mode = f" (mode {self.mode})" if self.mode else ""
        return f"directory {self.path}{mode}"
