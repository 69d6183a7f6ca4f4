"""
L3 Detection — Observed host snapshot.

Runs every read-only probe once and records the state of each managed
resource. Never cached across runs: a second invocation probes again.
"""

from __future__ import annotations

import logging
import os

from devbox.core.models.config import BootstrapConfig
from devbox.core.models.host import HostObservation, HostProfile, PackageFamily, ResourceState
from devbox.core.services.host_setup.data.constants import (
    BASE_PACKAGES,
    DOCKER_DAEMON_JSON,
    GROUP_PREFIX,
    RES_BASE_PACKAGES,
    RES_DOCKER,
    RES_DOCKER_CONFIG,
    RES_DRIVER,
    RES_EDITOR,
    RES_ROCM,
)
from devbox.core.services.host_setup.detection.environment import command_available
from devbox.core.services.host_setup.detection.hardware import (
    gpu_device_nodes,
    loaded_driver_modules,
    rocm_userland_state,
)
from devbox.core.services.host_setup.detection.identity import group_memberships
from devbox.core.services.host_setup.detection.system_deps import (
    check_system_deps,
    microsoft_apt_sources,
    snap_installed,
)

logger = logging.getLogger(__name__)


def _present(flag: bool) -> ResourceState:
    return ResourceState.MATCHING if flag else ResourceState.ABSENT


def _package_suite_state(profile: HostProfile) -> tuple[ResourceState, list[str]]:
    if profile.package_family is PackageFamily.NONE:
        return ResourceState.ABSENT, []
    packages = BASE_PACKAGES[profile.package_family.value]
    deps = check_system_deps(packages, profile.package_family.value)
    missing = deps["missing"]
    if not missing:
        return ResourceState.MATCHING, []
    if deps["installed"]:
        return ResourceState.MISMATCHED, missing
    return ResourceState.ABSENT, missing


def observe_host(
    profile: HostProfile,
    config: BootstrapConfig,
    user: str,
) -> HostObservation:
    """Probe the live host for every managed resource.

    Args:
        profile: Probed distribution profile.
        config: Run configuration (driver module names, groups).
        user: Login name whose group membership matters.

    Returns:
        HostObservation keyed by resource name.
    """
    obs = HostObservation()

    state, missing = _package_suite_state(profile)
    obs.resources[RES_BASE_PACKAGES] = state
    obs.missing_packages = missing

    obs.resources[RES_DOCKER] = _present(command_available("docker"))
    obs.resources[RES_DOCKER_CONFIG] = _present(os.path.isfile(DOCKER_DAEMON_JSON))

    obs.driver_modules = loaded_driver_modules(config.rocm.driver_modules)
    obs.device_nodes = gpu_device_nodes()
    obs.resources[RES_DRIVER] = _present(obs.driver_loaded)
    obs.resources[RES_ROCM] = rocm_userland_state()
    obs.resources[RES_EDITOR] = _present(command_available("code"))
    if profile.package_family is PackageFamily.APT:
        obs.snap_editor = snap_installed("code")
        obs.microsoft_sources = microsoft_apt_sources()

    obs.groups = group_memberships(user, config.required_groups)
    for group, member in obs.groups.items():
        obs.resources[f"{GROUP_PREFIX}{group}"] = _present(member)

    _report_gpu(obs, config)
    return obs


def _report_gpu(obs: HostObservation, config: BootstrapConfig) -> None:
    """Log driver and device-node findings as independent observations."""
    if obs.driver_loaded:
        logger.info("Kernel modules present: %s", ", ".join(obs.driver_modules))
    else:
        logger.warning(
            "Kernel GPU drivers appear missing (%s).",
            "/".join(config.rocm.driver_modules),
        )

    if obs.devices_present:
        logger.info("GPU device nodes present.")
    else:
        logger.warning(
            "GPU device nodes (/dev/kfd or /dev/dri/*) not found. Containers "
            "won't see the GPU until drivers are installed and devices appear."
        )
