"""
Converge errors - the three failure classes of a run plus configuration.
"""


class ConvergeError(Exception):
    """Base exception for all Converge errors."""
    pass


class ConfigurationError(ConvergeError):
    """Errors in settings or in loading a declaration file."""
    pass


class ValidationError(ConvergeError):
    """Malformed resource declarations, raised before any resource runs.

    Collects every problem found so one run reports them all.

    Attributes:
        problems: Human-readable problem descriptions
    """

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        summary = "; ".join(self.problems)
        super().__init__(f"Invalid resource declarations: {summary}")


class ResourceError(ConvergeError):
    """Error attributed to a single resource."""

    def __init__(self, resource: str, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"{resource}: {reason}")


class GuardEvaluationError(ResourceError):
    """Probing the current state of a resource failed."""
    pass


class ActionExecutionError(ResourceError):
    """A resource action ran but did not complete."""
    pass
