"""
L2 Resolver — Host reconciliation plan.

Combines the observed host, the run configuration and the reconcile
policy into an ordered HostPlan:

    base-packages → docker-engine → docker-daemon-config →
    kernel-driver → rocm-userland → group:* → editor

Opt-outs and an unsupported package family turn every host action into
a skip (the latter with a warning). The plan is pure data: building it
never touches the host.
"""

from __future__ import annotations

import logging

from devbox.core.models.config import BootstrapConfig
from devbox.core.models.host import HostObservation, HostProfile, ResourceState
from devbox.core.models.plan import (
    ActionKind,
    Decision,
    HostPlan,
    InstallPath,
    ManagedResource,
    PlannedStep,
    ResourceKind,
)
from devbox.core.services.host_setup.data import recipes
from devbox.core.services.host_setup.data.constants import (
    BASE_PACKAGES,
    GROUP_PREFIX,
    RES_BASE_PACKAGES,
    RES_DOCKER,
    RES_DOCKER_CONFIG,
    RES_DRIVER,
    RES_EDITOR,
    RES_ROCM,
)
from devbox.core.services.host_setup.domain.reconcile import reconcile, skip
from devbox.core.services.host_setup.resolver.remote_sources import RemoteSources

logger = logging.getLogger(__name__)


def managed_resources(config: BootstrapConfig) -> list[ManagedResource]:
    """Every host resource this run may reconcile, in plan order."""
    resources = [
        ManagedResource(
            name=RES_BASE_PACKAGES, kind=ResourceKind.PACKAGE, required=True,
            description="download and build tooling",
        ),
        ManagedResource(
            name=RES_DOCKER, kind=ResourceKind.PACKAGE, required=True,
            description="container engine",
        ),
        ManagedResource(
            name=RES_DOCKER_CONFIG, kind=ResourceKind.FILE,
            description="/etc/docker/daemon.json",
        ),
        ManagedResource(
            name=RES_DRIVER, kind=ResourceKind.DRIVER,
            description="amdgpu kernel driver",
        ),
        ManagedResource(
            name=RES_ROCM, kind=ResourceKind.PACKAGE, required=config.install_host_rocm,
            description="host ROCm userland",
        ),
    ]
    resources += [
        ManagedResource(
            name=f"{GROUP_PREFIX}{group}", kind=ResourceKind.GROUP,
            description=f"membership in {group}",
        )
        for group in config.required_groups
    ]
    resources.append(
        ManagedResource(name=RES_EDITOR, kind=ResourceKind.PACKAGE, description="VS Code"),
    )
    return resources


def _opt_out_reason(name: str, config: BootstrapConfig) -> str | None:
    if name == RES_DRIVER and not config.install_drivers:
        return "driver install disabled (--no-install-drivers)"
    if name == RES_ROCM and not config.install_host_rocm:
        return "host ROCm not requested (use --install-host-rocm)"
    if name == RES_EDITOR and not config.install_editor:
        return "editor install disabled (--no-code)"
    return None


def decide(
    resource: ManagedResource,
    observation: HostObservation,
    profile: HostProfile,
    config: BootstrapConfig,
) -> Decision:
    """Apply the reconcile policy plus run-level gates to one resource."""
    observed = observation.state_of(resource.name)

    opt_out = _opt_out_reason(resource.name, config)
    if opt_out:
        return skip(resource, observed, opt_out)

    # --reinstall re-runs package installs; it never rewrites host config files.
    force = config.reinstall and resource.kind is not ResourceKind.FILE
    decision = reconcile(resource, observed, force=force)

    if decision.action.mutates and not profile.can_mutate:
        return skip(
            resource, observed,
            "no supported package manager (apt, dnf, zypper); install manually",
            warning=True,
        )
    return decision


def _split_suite(
    decision: Decision,
    observation: HostObservation,
    family: str,
    reinstall: bool,
) -> tuple[list[str], list[str]]:
    """Split the base suite into (to install, to reinstall).

    Missing packages are always installed with the plain install verb
    (``dnf reinstall`` refuses packages that are not installed). Present
    packages are reinstalled only under --reinstall.
    """
    suite = BASE_PACKAGES.get(family, [])
    if decision.observed is ResourceState.ABSENT:
        return list(suite), []
    if decision.observed is ResourceState.MISMATCHED:
        missing = [p for p in suite if p in observation.missing_packages]
        if not missing:
            missing = list(suite)
    else:
        missing = []
    present = [p for p in suite if p not in missing] if reinstall else []
    return missing, present


def _paths_for(
    decision: Decision,
    observation: HostObservation,
    profile: HostProfile,
    config: BootstrapConfig,
    user: str,
    sources: RemoteSources,
) -> list[InstallPath]:
    family = profile.package_family.value
    name = decision.name
    reinstall = decision.action is ActionKind.REINSTALL
    ms_sources = observation.microsoft_sources

    if name == RES_BASE_PACKAGES:
        missing, present = _split_suite(decision, observation, family, config.reinstall)
        return recipes.base_package_paths(family, missing, present, ms_sources)
    if name == RES_DOCKER:
        return recipes.docker_paths(family, profile.os_codename, reinstall, ms_sources)
    if name == RES_DOCKER_CONFIG:
        return recipes.docker_config_paths()
    if name == RES_DRIVER:
        return recipes.driver_paths(family, sources.installer_urls)
    if name == RES_ROCM:
        return recipes.rocm_paths(
            family,
            profile.os_codename or config.rocm.fallback_codename,
            config.rocm.apt_index_url,
            config.rocm.gpg_key_url,
            sources.rocm_apt_series,
            sources.installer_urls,
            reinstall,
        )
    if name == RES_EDITOR:
        return recipes.editor_paths(family, observation.snap_editor, ms_sources, reinstall)
    if name.startswith(GROUP_PREFIX):
        return recipes.group_paths(name[len(GROUP_PREFIX):], user)
    return []


def build_host_plan(
    observation: HostObservation,
    profile: HostProfile,
    config: BootstrapConfig,
    user: str,
    sources: RemoteSources | None = None,
) -> HostPlan:
    """Build the ordered host plan.

    Args:
        observation: Probed state of every managed resource.
        profile: Host distribution profile.
        config: Run configuration (opt-outs, reinstall, groups).
        user: Login name to add to groups.
        sources: Confirmed upstream locations for the GPU stack.

    Returns:
        HostPlan whose steps carry a Decision and, for mutating
        decisions, the fallback chain of install paths.
    """
    sources = sources or RemoteSources()
    plan = HostPlan()

    for resource in managed_resources(config):
        decision = decide(resource, observation, profile, config)
        step = PlannedStep(decision=decision)
        if decision.action.mutates:
            step.paths = _paths_for(decision, observation, profile, config, user, sources)
            if not step.paths:
                step.notes.append("no install path available for this host")
        plan.steps.append(step)

    logger.debug(
        "Host plan: %d steps, %d actionable",
        len(plan.steps), len(plan.actionable),
    )
    return plan


def decide_all(
    observation: HostObservation,
    profile: HostProfile,
    config: BootstrapConfig,
) -> list[Decision]:
    """Decisions for every managed resource, without install paths."""
    return [decide(r, observation, profile, config) for r in managed_resources(config)]


def needs_remote_sources(decisions: list[Decision]) -> tuple[bool, bool]:
    """Whether (installer, apt series) lookups are needed for *decisions*."""
    mutating = {d.name for d in decisions if d.action.mutates}
    need_installer = RES_DRIVER in mutating or RES_ROCM in mutating
    need_apt_series = RES_ROCM in mutating
    return need_installer, need_apt_series
