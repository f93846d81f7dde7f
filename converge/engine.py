"""
Converge Engine - apply declared resources to the machine, in order.

Run Pipeline: Validate declarations → for each resource: evaluate guard →
apply if needed → fire notifications → Run Report.

Execution is strictly sequential. Actions touch shared external state (the
package database, the preferences store, shell startup files) that does not
tolerate concurrent writers.
"""

import logging
from collections.abc import Iterable, Sequence

from .collaborators import Collaborators
from .errors import (
    ActionExecutionError,
    GuardEvaluationError,
    ResourceError,
    ValidationError,
)
from .report import Outcome, ResourceResult, RunReport
from .resources.base import Resource

logger = logging.getLogger(__name__)


def validate_resources(resources: Sequence[Resource]) -> None:
    """Check a declaration list before anything runs.

    Detects duplicate names, unknown or self references in ``depends_on`` and
    ``notifies``, dependencies declared after their dependent, notification
    targets whose dependencies are declared after the notifier, and
    dependency cycles.

    Args:
        resources: Resources in declaration order

    Raises:
        ValidationError: Listing every problem found
    """
    problems: list[str] = []

    positions: dict[str, int] = {}
    for index, resource in enumerate(resources):
        if not isinstance(resource, Resource):
            problems.append(
                f"item {index} is a {type(resource).__name__}, not a Resource"
            )
            continue
        if resource.name in positions:
            problems.append(f"duplicate resource name '{resource.name}'")
            continue
        positions[resource.name] = index

    declared = [r for r in resources if isinstance(r, Resource)]

    for resource in declared:
        own_position = positions[resource.name]
        for dependency in resource.depends_on:
            if dependency == resource.name:
                problems.append(f"'{resource.name}' depends on itself")
            elif dependency not in positions:
                problems.append(
                    f"'{resource.name}' depends on unknown resource '{dependency}'"
                )
            elif positions[dependency] > own_position:
                problems.append(
                    f"'{resource.name}' depends on '{dependency}', which is declared after it"
                )

        for target in resource.notifies:
            if target == resource.name:
                problems.append(f"'{resource.name}' notifies itself")
            elif target not in positions:
                problems.append(
                    f"'{resource.name}' notifies unknown resource '{target}'"
                )

    problems.extend(_notification_ordering_problems(declared, positions))

    cycle = _find_dependency_cycle(declared, positions)
    if cycle:
        problems.append(f"Dependency cycle detected: {' → '.join(cycle)}")

    if problems:
        raise ValidationError(problems)


def _notification_ordering_problems(
    resources: Sequence[Resource], positions: dict[str, int]
) -> list[str]:
    """Find notification targets that would run before their dependencies.

    A notified resource runs right after its notifier, so everything it
    depends on must be declared no later than the notifier. Chained
    notifications run at the same point and are checked the same way.
    """
    by_name = {r.name: r for r in resources}
    problems: list[str] = []

    for notifier in resources:
        notifier_position = positions[notifier.name]
        reached: set[str] = set()
        pending = [t for t in notifier.notifies if t in by_name]
        while pending:
            target_name = pending.pop(0)
            if target_name in reached:
                continue
            reached.add(target_name)
            target = by_name[target_name]
            for dependency in target.depends_on:
                if positions.get(dependency, -1) > notifier_position:
                    problems.append(
                        f"'{target_name}' is notified by '{notifier.name}' but "
                        f"depends on '{dependency}', which is declared after "
                        f"'{notifier.name}'"
                    )
            pending.extend(t for t in target.notifies if t in by_name)

    return problems


def _find_dependency_cycle(
    resources: Sequence[Resource], known: dict[str, int]
) -> list[str] | None:
    """Return the first dependency cycle found as a list of names, or None."""
    by_name = {r.name: r for r in resources}
    visited: set[str] = set()
    rec_stack: set[str] = set()

    def detect_cycle_dfs(name: str, path: list[str]) -> list[str] | None:
        visited.add(name)
        rec_stack.add(name)
        path.append(name)

        for dependency in by_name[name].depends_on:
            if dependency not in known or dependency == name:
                continue
            if dependency not in visited:
                cycle = detect_cycle_dfs(dependency, path)
                if cycle:
                    return cycle
            elif dependency in rec_stack:
                return path[path.index(dependency):] + [dependency]

        rec_stack.remove(name)
        path.pop()
        return None

    for resource in resources:
        if resource.name not in visited:
            cycle = detect_cycle_dfs(resource.name, [])
            if cycle:
                return cycle
    return None


def select_resources(
    resources: Sequence[Resource], selectors: Iterable[str]
) -> list[Resource]:
    """Pick resources matching names or tags, plus everything they depend on.

    Declaration order is preserved.

    Args:
        resources: Validated resources in declaration order
        selectors: Resource names and/or tags

    Returns:
        The selected resources in declaration order

    Raises:
        ValidationError: If a selector matches nothing
    """
    selectors = list(selectors)
    unmatched = [
        selector for selector in selectors
        if not any(r.matches([selector]) for r in resources)
    ]
    if unmatched:
        raise ValidationError(
            [f"no resource matches '{selector}'" for selector in unmatched]
        )

    by_name = {r.name: r for r in resources}
    wanted: set[str] = set()
    pending = [r.name for r in resources if r.matches(selectors)]
    while pending:
        name = pending.pop()
        if name in wanted:
            continue
        wanted.add(name)
        pending.extend(by_name[name].depends_on)

    return [r for r in resources if r.name in wanted]


class _RunState:
    """Mutable bookkeeping for one run; frozen into a RunReport at the end."""

    def __init__(self):
        self.results: list[ResourceResult] = []
        self.attempted: dict[str, str | None] = {}
        self.failed: set[str] = set()
        self.blocking_failure: str | None = None

    def record(
        self,
        resource: Resource,
        outcome: Outcome,
        reason: str | None = None,
        notified_by: str | None = None,
    ) -> None:
        if outcome is Outcome.FAILED:
            self.failed.add(resource.name)
            if not resource.best_effort and self.blocking_failure is None:
                self.blocking_failure = resource.name
        self.results.append(
            ResourceResult(
                name=resource.name,
                outcome=outcome,
                reason=reason,
                notified_by=notified_by,
                best_effort=resource.best_effort,
            )
        )


class ConvergenceEngine:
    """Applies an ordered list of resources and reports what happened.

    Attributes:
        collaborators: External interfaces handed to guards and actions
        dry_run: Evaluate guards only; report what would change

    Example:
        >>> engine = ConvergenceEngine()
        >>> report = engine.run([
        ...     PackageResource(name="zsh"),
        ...     CommandResource(
        ...         name="set default shell",
        ...         command=["chsh", "-s", "/usr/local/bin/zsh"],
        ...         not_if=LoginShellProbe(shell="/usr/local/bin/zsh"),
        ...         depends_on=["zsh"],
        ...     ),
        ... ])
        >>> [(r.name, r.outcome.value) for r in report.results]
        [('zsh', 'converged'), ('set default shell', 'converged')]
    """

    def __init__(
        self, collaborators: Collaborators | None = None, dry_run: bool = False
    ):
        self.collaborators = collaborators or Collaborators.default()
        self.dry_run = dry_run

    def run(
        self,
        resources: Iterable[Resource],
        only: Iterable[str] | None = None,
    ) -> RunReport:
        """Converge every resource in declaration order.

        Args:
            resources: Resources in declaration order
            only: Optional names/tags restricting which resources run

        Returns:
            RunReport with one entry per processed resource, plus one entry
            per notification fired

        Raises:
            ValidationError: If the declarations are malformed; nothing runs
        """
        resources = list(resources)
        validate_resources(resources)
        self._by_name = {r.name: r for r in resources}

        selected = select_resources(resources, only) if only else resources
        mode = "dry run" if self.dry_run else "run"
        logger.info(f"Starting {mode} of {len(selected)} resources")

        state = _RunState()
        aborted = False
        for resource in selected:
            if not self._process(resource, state):
                aborted = True
                failed = state.blocking_failure or resource.name
                logger.error(f"Aborting run after failure of '{failed}'")
                break

        report = RunReport(
            results=tuple(state.results), dry_run=self.dry_run, aborted=aborted
        )
        logger.info(
            f"Finished {mode}: {len(report.converged)} converged, "
            f"{len(report.pending)} pending, {len(report.failed)} failed, "
            f"{len(report.results)} total"
        )
        return report

    def _process(self, resource: Resource, state: _RunState) -> bool:
        """Process one resource in its own slot.

        Returns:
            False when the run must abort
        """
        if resource.name in state.attempted:
            notifier = state.attempted[resource.name]
            if self.dry_run:
                reason = f"would run via notification from '{notifier}'"
            elif resource.name in state.failed:
                reason = f"already attempted via notification from '{notifier}' (failed)"
            else:
                reason = f"already applied via notification from '{notifier}'"
            state.record(resource, Outcome.UNCHANGED, reason=reason)
            return True

        if resource.notify_only:
            logger.debug(f"Skipping '{resource.name}': runs only when notified")
            state.record(resource, Outcome.UNCHANGED, reason="not notified")
            return True

        failed_dependencies = [d for d in resource.depends_on if d in state.failed]
        if failed_dependencies:
            reason = f"dependency '{failed_dependencies[0]}' failed"
            logger.error(f"✗ {resource.name}: {reason}")
            state.record(resource, Outcome.FAILED, reason=reason)
            return resource.best_effort

        try:
            satisfied = self._evaluate_guard(resource)
        except GuardEvaluationError as e:
            logger.error(f"✗ {resource.name}: could not check state: {e.reason}")
            state.record(resource, Outcome.FAILED, reason=e.reason)
            return resource.best_effort

        if satisfied:
            logger.info(f"✓ {resource.name}: up to date")
            state.record(resource, Outcome.UNCHANGED)
            return True

        if self.dry_run:
            logger.info(f"~ {resource.name}: would converge")
            state.record(resource, Outcome.PENDING)
            self._plan_notifications(resource, state)
            return True

        try:
            self._execute(resource)
        except ActionExecutionError as e:
            logger.error(f"✗ {resource.name}: {e.reason}")
            state.attempted[resource.name] = None
            state.record(resource, Outcome.FAILED, reason=e.reason)
            return resource.best_effort

        state.attempted[resource.name] = None
        logger.info(f"✓ {resource.name}: converged")
        state.record(resource, Outcome.CONVERGED)
        return self._notify(resource, state)

    def _evaluate_guard(self, resource: Resource) -> bool:
        try:
            return bool(resource.is_satisfied(self.collaborators))
        except GuardEvaluationError:
            raise
        except ResourceError as e:
            raise GuardEvaluationError(resource.name, e.reason) from e
        except Exception as e:
            raise GuardEvaluationError(resource.name, _describe(e)) from e

    def _execute(self, resource: Resource) -> None:
        logger.debug(f"Applying '{resource.name}': {resource.summary()}")
        try:
            resource.apply(self.collaborators)
        except ActionExecutionError as e:
            if e.resource == resource.name:
                raise
            raise ActionExecutionError(resource.name, e.reason) from e
        except ResourceError as e:
            raise ActionExecutionError(resource.name, e.reason) from e
        except Exception as e:
            raise ActionExecutionError(resource.name, _describe(e)) from e

    def _notify(self, resource: Resource, state: _RunState) -> bool:
        """Run the actions of the resources ``resource`` notifies.

        Each target runs at most once per run, on its first trigger, ignoring
        its own guard. A target that converges fires its own notifications.

        Returns:
            False when the run must abort
        """
        for target_name in resource.notifies:
            if target_name in state.attempted:
                logger.debug(
                    f"'{target_name}' already ran this run; ignoring notification "
                    f"from '{resource.name}'"
                )
                continue

            target = self._by_name[target_name]
            state.attempted[target_name] = resource.name
            logger.info(f"→ {resource.name} notifies {target_name}")
            try:
                self._execute(target)
            except ActionExecutionError as e:
                logger.error(f"✗ {target_name}: {e.reason}")
                state.record(
                    target, Outcome.FAILED, reason=e.reason, notified_by=resource.name
                )
                if not target.best_effort:
                    return False
                continue

            logger.info(f"✓ {target_name}: converged (notified)")
            state.record(target, Outcome.CONVERGED, notified_by=resource.name)
            if not self._notify(target, state):
                return False
        return True

    def _plan_notifications(self, resource: Resource, state: _RunState) -> None:
        for target_name in resource.notifies:
            if target_name in state.attempted:
                continue
            target = self._by_name[target_name]
            state.attempted[target_name] = resource.name
            state.record(target, Outcome.PENDING, notified_by=resource.name)
            self._plan_notifications(target, state)


def _describe(error: Exception) -> str:
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__
