"""Base probe class for Converge."""

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from converge.collaborators import Collaborators


class Probe(BaseModel):
    """Base class for guard probes.

    A probe answers a yes/no question about the live system. Probes are
    side-effect free and never prompt for input; they back the ``not_if``
    and ``only_if`` guards of command resources.

    Attributes:
        description: Optional human-readable description of what is checked

    Example:
        >>> class HostnameProbe(Probe):
        ...     hostname: str
        ...
        ...     def check(self, ctx) -> bool:
        ...         return socket.gethostname() == self.hostname
    """

    model_config = ConfigDict(frozen=True)

    description: str | None = None

    def check(self, ctx: "Collaborators") -> bool:
        """Check the probe against current system state.

        Args:
            ctx: Collaborators used to reach the system

        Returns:
            True if the probed condition holds, False otherwise
        """
        raise NotImplementedError("Subclasses must implement check()")

    def describe(self) -> str:
        return self.description or self.__class__.__name__
