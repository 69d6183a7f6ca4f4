"""
L1 Domain — Reconciliation policy (pure).

One function decides, for every managed resource, whether to act:

    kind      absent          present-matching        present-mismatched
    ────────  ──────────────  ──────────────────────  ──────────────────
    package   install         skip  (force→reinstall)  reinstall
    driver    install         skip  (force→reinstall)  reinstall
    group     add_to_group    skip                     skip
    file      write_file      skip  (force→write)      skip (force→write)

Group membership is additive only: it never removes a user from any
group, and "force" has nothing to redo once the user is a member.
Generated files never replace user edits unless forced.

No I/O, no subprocess. Same inputs, same Decision.
"""

from __future__ import annotations

from devbox.core.models.host import ResourceState
from devbox.core.models.plan import ActionKind, Decision, ManagedResource, ResourceKind


def reconcile(
    resource: ManagedResource,
    observed: ResourceState,
    force: bool = False,
) -> Decision:
    """Decide what to do about *resource* given its *observed* state.

    Args:
        resource: The resource being reconciled.
        observed: Its state as probed this run.
        force: Re-apply even when already present.

    Returns:
        Decision with the action and a human-readable reason.
    """
    kind = resource.kind

    if kind is ResourceKind.GROUP:
        if observed is ResourceState.ABSENT:
            return _decide(resource, observed, ActionKind.ADD_TO_GROUP, "not a member")
        return _decide(resource, observed, ActionKind.SKIP, "already a member")

    if kind is ResourceKind.FILE:
        if observed is ResourceState.ABSENT:
            return _decide(resource, observed, ActionKind.WRITE_FILE, "does not exist")
        if force:
            return _decide(resource, observed, ActionKind.WRITE_FILE, "overwrite forced")
        return _decide(resource, observed, ActionKind.SKIP, "exists; use --force to overwrite")

    # PACKAGE / DRIVER
    if observed is ResourceState.ABSENT:
        return _decide(resource, observed, ActionKind.INSTALL, "not installed")
    if observed is ResourceState.MISMATCHED:
        return _decide(resource, observed, ActionKind.REINSTALL, "installed but not usable")
    if force:
        return _decide(resource, observed, ActionKind.REINSTALL, "reinstall forced")
    return _decide(resource, observed, ActionKind.SKIP, "already installed")


def _decide(
    resource: ManagedResource,
    observed: ResourceState,
    action: ActionKind,
    reason: str,
) -> Decision:
    return Decision(resource=resource, observed=observed, action=action, reason=reason)


def skip(resource: ManagedResource, observed: ResourceState, reason: str, warning: bool = False) -> Decision:
    """A skip that overrides the policy (opt-out, unsupported host)."""
    return Decision(
        resource=resource,
        observed=observed,
        action=ActionKind.SKIP,
        reason=reason,
        warning=warning,
    )
