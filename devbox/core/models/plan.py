"""
Reconciliation plan models.

A ManagedResource is something the bootstrapper owns (a package suite,
a driver, a group membership, a generated file). The reconciler turns
(resource, observed state, force) into a Decision; the planner attaches
the ordered install paths that can carry the decision out.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from devbox.core.models.host import ResourceState


class ResourceKind(str, Enum):
    PACKAGE = "package"
    DRIVER = "driver"
    GROUP = "group"
    FILE = "file"


class ActionKind(str, Enum):
    SKIP = "skip"
    INSTALL = "install"
    REINSTALL = "reinstall"
    ADD_TO_GROUP = "add_to_group"
    WRITE_FILE = "write_file"

    @property
    def mutates(self) -> bool:
        return self is not ActionKind.SKIP


class ManagedResource(BaseModel):
    """A resource whose state the bootstrapper reconciles."""

    name: str
    kind: ResourceKind
    required: bool = False
    description: str = ""


class Command(BaseModel):
    """One external command inside an install path.

    ``check=False`` marks a best-effort command: a failure is logged
    as a warning and the path continues.
    """

    argv: list[str]
    sudo: bool = False
    input: str | None = None
    check: bool = True
    timeout: int = 1800

    def display(self) -> str:
        prefix = "sudo " if self.sudo else ""
        return prefix + " ".join(self.argv)


class InstallPath(BaseModel):
    """An ordered command sequence that brings a resource to target."""

    name: str
    commands: list[Command] = Field(default_factory=list)


class Decision(BaseModel):
    """What the reconciler decided for one resource."""

    resource: ManagedResource
    observed: ResourceState
    action: ActionKind
    reason: str = ""
    warning: bool = False

    @property
    def name(self) -> str:
        return self.resource.name


class PlannedStep(BaseModel):
    """A decision plus the fallback chain of ways to apply it.

    Paths are tried in order; the first that completes wins.
    """

    decision: Decision
    paths: list[InstallPath] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @property
    def actionable(self) -> bool:
        return self.decision.action.mutates


class HostPlan(BaseModel):
    """Ordered reconciliation plan for the host."""

    steps: list[PlannedStep] = Field(default_factory=list)

    @property
    def actionable(self) -> list[PlannedStep]:
        return [s for s in self.steps if s.actionable]

    @property
    def group_changes(self) -> list[str]:
        return [
            s.decision.resource.name.split(":", 1)[1]
            for s in self.steps
            if s.decision.action is ActionKind.ADD_TO_GROUP
        ]

    def to_dict(self) -> dict:
        return {
            "steps": [
                {
                    "resource": s.decision.name,
                    "required": s.decision.resource.required,
                    "observed": s.decision.observed.value,
                    "action": s.decision.action.value,
                    "reason": s.decision.reason,
                    "paths": [p.name for p in s.paths],
                }
                for s in self.steps
            ],
        }
