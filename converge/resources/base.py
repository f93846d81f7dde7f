"""Base resource classes for Converge."""

import logging
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from converge.collaborators import Collaborators

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Closed set of resource kinds."""
    PACKAGE = "Package"
    FILE_DOWNLOAD = "FileDownload"
    DIRECTORY_EXISTS = "DirectoryExists"
    KEY_VALUE_SETTING = "KeyValueSetting"
    COMMAND_EXECUTED = "CommandExecuted"


class Resource(BaseModel):
    """Base resource class - all resources inherit from this.

    A resource is one declared unit of desired state. It knows how to tell
    whether the machine already satisfies it (the guard) and how to get there
    (the action). Both reach the system only through the collaborators passed
    in, never through global state.

    Run Flow:
    1. The engine calls is_satisfied(ctx); it must not change anything
    2. If it returns True the resource is reported unchanged
    3. Otherwise apply(ctx) runs once and the resource is reported converged
    4. Resources named in ``notifies`` then run their action unconditionally

    Resources are immutable once constructed. ``depends_on`` and ``notifies``
    accept either names or Resource objects; objects are stored by name.

    Attributes:
        name: Unique identifier used for logging and notification targeting
        description: Optional human-readable note shown in plan output
        depends_on: Resources that must be declared (and processed) earlier
        notifies: Resources whose action runs after this one converges
        best_effort: When True a failure does not abort the run
        notify_only: When True the action only runs when notified
        tags: Labels for selecting a subset of resources
    """

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ResourceKind]

    name: str = Field(min_length=1)
    description: str | None = None
    depends_on: list[str] = Field(default_factory=list)
    notifies: list[str] = Field(default_factory=list)
    best_effort: bool = False
    notify_only: bool = False
    tags: list[str] = Field(default_factory=list)

    @field_validator("depends_on", "notifies", mode="before")
    @classmethod
    def reference_by_name(cls, value: Any) -> Any:
        """Accept a single reference or Resource objects in place of names."""
        if isinstance(value, (str, Resource)):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [
                item.name if isinstance(item, Resource) else item for item in value
            ]
        return value

    def is_satisfied(self, ctx: "Collaborators") -> bool:
        """Check whether the system already matches this resource.

        Args:
            ctx: Collaborators used to probe the system

        Returns:
            True if no action is needed
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement is_satisfied()"
        )

    def apply(self, ctx: "Collaborators") -> None:
        """Converge the system toward this resource's desired state.

        Args:
            ctx: Collaborators used to change the system

        Raises:
            ActionExecutionError: If the action does not complete
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement apply()"
        )

    def summary(self) -> str:
        """One-line description of the desired state, for plan output."""
        return self.description or self.kind.value

    def matches(self, selectors: Iterable[str]) -> bool:
        """True when any selector equals this resource's name or one of its tags."""
        selectors = set(selectors)
        return self.name in selectors or bool(selectors.intersection(self.tags))
