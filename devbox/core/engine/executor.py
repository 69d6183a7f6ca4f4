"""
Engine executor — carries out a host reconciliation plan.

For each planned step, install paths are tried in order through the
adapter registry; the first path whose commands all succeed wins.

    required resource, every path failed → RequiredResourceError (run aborts)
    optional resource, every path failed → warning, run continues

Best-effort commands (``check=False``) never fail a path. Nothing here
decides *whether* to act; that was settled by the reconciler.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from devbox.adapters.registry import AdapterRegistry
from devbox.core.errors import RequiredResourceError
from devbox.core.models.action import Action, Receipt
from devbox.core.models.plan import ActionKind, Command, HostPlan, InstallPath, PlannedStep
from devbox.core.services.host_setup.data.constants import GROUP_PREFIX, RELOGIN_NOTICE

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """What happened to one planned step."""

    resource: str
    action: str
    status: str = "skipped"          # ok | skipped | failed | dry-run
    reason: str = ""
    path: str | None = None          # winning install path
    attempts: list[str] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "resource": self.resource,
            "action": self.action,
            "status": self.status,
            "reason": self.reason,
            "path": self.path,
            "attempts": self.attempts,
        }


@dataclass
class ExecutionReport:
    """Result of executing a host plan."""

    operation_id: str = ""
    outcomes: list[StepOutcome] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)

    @property
    def receipts(self) -> list[Receipt]:
        return [r for o in self.outcomes for r in o.receipts]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "ok")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")

    @property
    def groups_added(self) -> list[str]:
        return [
            o.resource[len(GROUP_PREFIX):]
            for o in self.outcomes
            if o.action == ActionKind.ADD_TO_GROUP.value and o.status == "ok"
        ]

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "notices": self.notices,
        }


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"


def _command_action(operation_id: str, resource: str, index: int, cmd: Command) -> Action:
    return Action(
        id=f"{operation_id}:{resource}:{index}",
        name=cmd.display(),
        adapter="shell",
        resource=resource,
        params={
            "argv": cmd.argv,
            "sudo": cmd.sudo,
            "input": cmd.input,
            "timeout": cmd.timeout,
        },
    )


def run_path(
    path: InstallPath,
    resource: str,
    registry: AdapterRegistry,
    operation_id: str,
    dry_run: bool = False,
) -> tuple[bool, list[Receipt]]:
    """Run every command of *path*; stop at the first checked failure.

    Returns:
        (completed, receipts)
    """
    receipts: list[Receipt] = []
    for i, cmd in enumerate(path.commands):
        receipt = registry.execute_action(
            _command_action(operation_id, resource, i, cmd),
            dry_run=dry_run,
        )
        receipts.append(receipt)
        if not receipt.failed:
            continue
        if not cmd.check:
            logger.warning("  ⊘ %s (ignored): %s", cmd.display(), receipt.error)
            continue
        logger.warning("  ✗ %s: %s", cmd.display(), receipt.error)
        return False, receipts
    return True, receipts


def execute_step(
    step: PlannedStep,
    registry: AdapterRegistry,
    operation_id: str,
    dry_run: bool = False,
) -> StepOutcome:
    """Apply one planned step, falling through its install paths.

    A step whose paths all failed comes back with status ``failed``;
    the caller decides whether that aborts the run.
    """
    decision = step.decision
    outcome = StepOutcome(
        resource=decision.name,
        action=decision.action.value,
        reason=decision.reason,
    )

    if not step.actionable:
        log = logger.warning if decision.warning else logger.info
        log("⊘ %s: %s", decision.name, decision.reason)
        return outcome

    logger.info("→ %s: %s (%s)", decision.name, decision.action.value, decision.reason)

    for path in step.paths:
        outcome.attempts.append(path.name)
        completed, receipts = run_path(path, decision.name, registry, operation_id, dry_run)
        outcome.receipts.extend(receipts)
        if completed:
            outcome.path = path.name
            outcome.status = "dry-run" if dry_run else "ok"
            logger.info("✓ %s via %s", decision.name, path.name)
            return outcome
        logger.warning("%s: path '%s' failed; trying next", decision.name, path.name)

    outcome.status = "failed"
    if decision.resource.required:
        logger.error(
            "✗ %s is required and could not be installed (tried: %s)",
            decision.name, ", ".join(outcome.attempts) or "nothing",
        )
        return outcome

    logger.warning(
        "✗ %s could not be installed automatically; complete it manually",
        decision.name,
    )
    return outcome


def execute_host_plan(
    plan: HostPlan,
    registry: AdapterRegistry,
    operation_id: str = "",
    dry_run: bool = False,
    report: ExecutionReport | None = None,
) -> ExecutionReport:
    """Execute every step of *plan* in order.

    Args:
        plan: The host plan.
        registry: Adapter registry for dispatch.
        operation_id: Identifier stamped on every action.
        dry_run: If True, validate but don't execute.
        report: Report to fill in; the caller keeps the partial report
            when a required step aborts the run.

    Returns:
        ExecutionReport with one outcome per step.

    Raises:
        RequiredResourceError: a required step failed; steps after it
            are not attempted.
    """
    if report is None:
        report = ExecutionReport()
    if not report.operation_id:
        report.operation_id = operation_id or generate_operation_id()

    for step in plan.steps:
        outcome = execute_step(step, registry, report.operation_id, dry_run)
        report.outcomes.append(outcome)
        if outcome.status == "failed" and step.decision.resource.required:
            raise RequiredResourceError(outcome.resource, outcome.attempts)

    if report.groups_added:
        logger.warning(RELOGIN_NOTICE)
        report.notices.append(RELOGIN_NOTICE)

    return report
