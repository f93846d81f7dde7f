"""Run report - the immutable per-run record of resource outcomes."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Outcome(str, Enum):
    """Outcome of processing one resource."""
    UNCHANGED = "unchanged"   # Guard held, nothing done
    CONVERGED = "converged"   # Action ran and succeeded
    FAILED = "failed"         # Guard or action failed
    PENDING = "pending"       # Dry run: action would run


class ResourceResult(BaseModel):
    """One entry of a run report.

    Attributes:
        name: Resource name
        outcome: What happened to the resource
        reason: Human-readable failure reason or note
        notified_by: Name of the resource whose notification produced this entry
        best_effort: Whether the resource tolerates failure
    """

    model_config = ConfigDict(frozen=True)

    name: str
    outcome: Outcome
    reason: str | None = None
    notified_by: str | None = None
    best_effort: bool = False

    @property
    def blocking_failure(self) -> bool:
        """True for a failure that makes the run unsuccessful."""
        return self.outcome is Outcome.FAILED and not self.best_effort


class RunReport(BaseModel):
    """Ordered, immutable outcomes of a single engine run.

    Entries follow declaration order, with notification-triggered entries
    placed right after the resource that triggered them.

    Attributes:
        results: Resource results in processing order
        dry_run: True when no action was executed
        aborted: True when a failure stopped the run early
    """

    model_config = ConfigDict(frozen=True)

    results: tuple[ResourceResult, ...] = ()
    dry_run: bool = False
    aborted: bool = False

    @property
    def names(self) -> list[str]:
        return [result.name for result in self.results]

    def with_outcome(self, outcome: Outcome) -> list[ResourceResult]:
        return [result for result in self.results if result.outcome is outcome]

    @property
    def failed(self) -> list[ResourceResult]:
        return self.with_outcome(Outcome.FAILED)

    @property
    def converged(self) -> list[ResourceResult]:
        return self.with_outcome(Outcome.CONVERGED)

    @property
    def pending(self) -> list[ResourceResult]:
        return self.with_outcome(Outcome.PENDING)

    @property
    def changed(self) -> bool:
        """True when work was performed (or would be, in a dry run)."""
        return bool(self.converged or self.pending)

    @property
    def success(self) -> bool:
        """True when no non-best-effort resource failed."""
        return not any(result.blocking_failure for result in self.results)

    def outcome_of(self, name: str) -> Outcome | None:
        """Outcome of the first entry for ``name``, or None if absent."""
        for result in self.results:
            if result.name == name:
                return result.outcome
        return None

    def exit_code(self, detailed: bool = False) -> int:
        """Process exit code for this report.

        Args:
            detailed: Distinguish "work performed" (2) from "nothing to do" (0)

        Returns:
            1 on a blocking failure, 2 when detailed and something changed, else 0
        """
        if not self.success:
            return 1
        if detailed and self.changed:
            return 2
        return 0
