"""Package resource for Homebrew formulae and casks."""

from collections.abc import Iterable
from typing import Any

from pydantic import Field, model_validator

from .base import Resource, ResourceKind


class PackageResource(Resource):
    """Package resource - ensures a formula or cask is installed.

    Usage:
        PackageResource(name="zsh")
        PackageResource(name="emacs", options=["--cocoa", "--with-gnutls"])
        PackageResource(name="iterm2", cask=True)

    Attributes:
        package: Package name passed to the package manager (defaults to name)
        cask: Install as a cask (GUI app bundle) instead of a formula
        options: Extra install options
    """

    kind = ResourceKind.PACKAGE

    package: str | None = None
    cask: bool = False
    options: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def name_from_package(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name") and data.get("package"):
            data = {**data, "name": data["package"]}
        return data

    @property
    def target(self) -> str:
        return self.package or self.name

    def is_satisfied(self, ctx) -> bool:
        return ctx.packages.is_installed(self.target, cask=self.cask)

    def apply(self, ctx) -> None:
        ctx.packages.install(self.target, options=self.options, cask=self.cask)

    def summary(self) -> str:
        if self.description:
            return self.description
        kind = "cask" if self.cask else "package"
        options = f" {' '.join(self.options)}" if self.options else ""
        return f"{kind} {self.target}{options} installed"


def packages(names: Iterable[str], **kwargs) -> list[PackageResource]:
    """Expand a package inventory into one resource per name.

    Example:
        >>> [r.name for r in packages(["ack", "tmux"], tags=["cli"])]
        ['ack', 'tmux']
    """
    return [PackageResource(name=name, **kwargs) for name in names]


def casks(names: Iterable[str], **kwargs) -> list[PackageResource]:
    """Expand a cask inventory into one resource per name."""
    return packages(names, cask=True, **kwargs)
