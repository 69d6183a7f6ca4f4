"""
Bootstrap use case — probe → resolve → reconcile → emit.

Ties together the host probes, the version resolver, the planner, the
engine and the devcontainer generators. Every stage receives the same
explicit BootstrapConfig; nothing is read from globals.

The read-only entry points (run_probe, run_resolve, run_plan) share
the same stages and stop before anything is changed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from devbox.adapters.registry import AdapterRegistry, default_registry
from devbox.core.engine.executor import (
    ExecutionReport,
    execute_host_plan,
    generate_operation_id,
)
from devbox.core.errors import RequiredResourceError, UnresolvableVersion
from devbox.core.models.config import BootstrapConfig
from devbox.core.models.host import BaseImageUser, HostIdentity, HostObservation, HostProfile
from devbox.core.models.plan import HostPlan
from devbox.core.models.template import WriteResult
from devbox.core.models.version import ResolvedVersion
from devbox.core.persistence.audit import AuditEntry, AuditWriter
from devbox.core.services.devcontainer_generate import container_tag, generate_devcontainer
from devbox.core.services.host_setup.detection.environment import probe
from devbox.core.services.host_setup.detection.identity import base_image_user, host_identity
from devbox.core.services.host_setup.detection.network import RemoteIndex
from devbox.core.services.host_setup.detection.snapshot import observe_host
from devbox.core.services.host_setup.resolver.plan_resolution import (
    build_host_plan,
    decide_all,
    needs_remote_sources,
)
from devbox.core.services.host_setup.resolver.remote_sources import gather_remote_sources
from devbox.core.services.host_setup.resolver.version_resolution import (
    list_index_versions,
    resolve_version,
)

logger = logging.getLogger(__name__)

REOPEN_HINT = "Open this folder in VS Code → Dev Containers: Reopen in Container."


# ── Results ─────────────────────────────────────────────────────


@dataclass
class ProbeResult:
    """Result of probing the host."""

    profile: HostProfile | None = None
    identity: HostIdentity | None = None
    observation: HostObservation | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "profile": self.profile.model_dump(mode="json") if self.profile else None,
            "identity": self.identity.model_dump(mode="json") if self.identity else None,
            "observation": (
                self.observation.model_dump(mode="json") if self.observation else None
            ),
        }


@dataclass
class ResolveResult:
    """Result of version resolution."""

    resolved: ResolvedVersion | None = None
    tag: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        data = self.resolved.model_dump(mode="json") if self.resolved else {}
        data["tag"] = self.tag
        return data


@dataclass
class PlanResult:
    """Result of planning without applying."""

    profile: HostProfile | None = None
    resolved: ResolvedVersion | None = None
    plan: HostPlan | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "profile": self.profile.model_dump(mode="json") if self.profile else None,
            "rocm": self.resolved.model_dump(mode="json") if self.resolved else None,
            "plan": self.plan.to_dict() if self.plan else None,
        }


@dataclass
class BootstrapResult:
    """Result of a full bootstrap run."""

    operation_id: str = ""
    profile: HostProfile | None = None
    identity: HostIdentity | None = None
    resolved: ResolvedVersion | None = None
    plan: HostPlan | None = None
    report: ExecutionReport | None = None
    base_image_user: BaseImageUser | None = None
    artifacts: list[WriteResult] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    error: str | None = None
    duration_ms: int = 0

    @property
    def exit_code(self) -> int:
        return 1 if self.error else 0

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        if self.report is not None and self.report.failed:
            return "partial"
        if any(a.status == "failed" for a in self.artifacts):
            return "partial"
        return "ok"

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "error": self.error,
            "profile": self.profile.model_dump(mode="json") if self.profile else None,
            "identity": self.identity.model_dump(mode="json") if self.identity else None,
            "rocm": self.resolved.model_dump(mode="json") if self.resolved else None,
            "host": self.report.to_dict() if self.report else None,
            "base_image_user": (
                self.base_image_user.model_dump(mode="json") if self.base_image_user else None
            ),
            "artifacts": [a.model_dump(mode="json") for a in self.artifacts],
            "notices": self.notices,
            "duration_ms": self.duration_ms,
        }


# ── Read-only entry points ──────────────────────────────────────


def _index(config: BootstrapConfig, index: RemoteIndex | None) -> RemoteIndex:
    return index or RemoteIndex(timeout=config.rocm.network_timeout)


def run_probe(config: BootstrapConfig) -> ProbeResult:
    """Probe the host without changing anything."""
    profile = probe()
    identity = host_identity()
    observation = observe_host(profile, config, identity.user)
    return ProbeResult(profile=profile, identity=identity, observation=observation)


def run_resolve(
    config: BootstrapConfig,
    index: RemoteIndex | None = None,
    profile: HostProfile | None = None,
) -> ResolveResult:
    """Resolve the ROCm version for *config*."""
    profile = profile or probe()
    try:
        resolved = resolve_version(
            config.version_spec(), config.rocm, _index(config, index), profile.os_codename,
        )
    except UnresolvableVersion as e:
        return ResolveResult(error=str(e))
    return ResolveResult(resolved=resolved, tag=container_tag(resolved, config.rocm.default_tag))


def run_versions(config: BootstrapConfig, index: RemoteIndex | None = None) -> list[str]:
    """Numeric ROCm versions published in the apt index."""
    return list_index_versions(_index(config, index), config.rocm)


def _plan_host(
    config: BootstrapConfig,
    profile: HostProfile,
    resolved: ResolvedVersion,
    user: str,
    index: RemoteIndex,
) -> HostPlan:
    observation = observe_host(profile, config, user)
    need_installer, need_apt_series = needs_remote_sources(
        decide_all(observation, profile, config),
    )
    sources = None
    if need_installer or need_apt_series:
        sources = gather_remote_sources(
            resolved, profile, config.rocm, index,
            need_installer=need_installer,
            need_apt_series=need_apt_series,
        )
    return build_host_plan(observation, profile, config, user, sources)


def run_plan(config: BootstrapConfig, index: RemoteIndex | None = None) -> PlanResult:
    """Build the host plan without applying it."""
    result = PlanResult()
    result.profile = probe()
    index = _index(config, index)
    try:
        result.resolved = resolve_version(
            config.version_spec(), config.rocm, index, result.profile.os_codename,
        )
    except UnresolvableVersion as e:
        result.error = str(e)
        return result
    identity = host_identity()
    result.plan = _plan_host(config, result.profile, result.resolved, identity.user, index)
    return result


# ── Full run ────────────────────────────────────────────────────


def _lookup_base_image_user(
    config: BootstrapConfig,
    registry: AdapterRegistry,
    resolved: ResolvedVersion,
    identity: HostIdentity,
) -> BaseImageUser | None:
    if config.dry_run:
        logger.info("[dry-run] not pulling the base image to look for UID %d", identity.uid)
        return None
    image = config.container.base_image.format(tag=container_tag(resolved, config.rocm.default_tag))
    found = base_image_user(registry, image, identity.uid, timeout=config.container.inspect_timeout)
    if not found.ok:
        logger.warning(
            "Could not inspect %s (%s); the container will create '%s'",
            image, found.error, config.container.default_user,
        )
        return None
    return found.value


def _write_audit(config: BootstrapConfig, result: BootstrapResult) -> None:
    decisions = []
    if result.report is not None:
        decisions = [o.to_dict() for o in result.report.outcomes]
    entry = AuditEntry(
        operation_id=result.operation_id,
        scope=config.scope,
        dry_run=config.dry_run,
        rocm_version=result.resolved.version if result.resolved else "",
        rocm_fallback=result.resolved.fallback_used if result.resolved else False,
        package_family=result.profile.package_family.value if result.profile else "",
        status=result.status,
        decisions=decisions,
        artifacts=[a.model_dump(mode="json") for a in result.artifacts],
        duration_ms=result.duration_ms,
        errors=[result.error] if result.error else [],
    )
    AuditWriter(project_root=config.project_dir).write(entry)


def run_bootstrap(
    config: BootstrapConfig,
    registry: AdapterRegistry | None = None,
    index: RemoteIndex | None = None,
) -> BootstrapResult:
    """Run every stage in order.

    Args:
        config: Run configuration.
        registry: Adapter registry (default: real shell + docker).
        index: Remote index client (default: HTTP).

    Returns:
        BootstrapResult. ``error`` is set, and ``exit_code`` is 1, when
        the version is unresolvable or a required host resource could
        not be installed; artifacts are not generated in that case.
    """
    start = time.monotonic()
    registry = registry or default_registry()
    index = _index(config, index)
    result = BootstrapResult(operation_id=generate_operation_id())

    try:
        _run_stages(config, registry, index, result)
    finally:
        result.duration_ms = int((time.monotonic() - start) * 1000)
        if config.audit:
            _write_audit(config, result)

    return result


def _run_stages(
    config: BootstrapConfig,
    registry: AdapterRegistry,
    index: RemoteIndex,
    result: BootstrapResult,
) -> None:
    # 1. Probe
    result.profile = probe()
    result.identity = host_identity()

    # 2. Resolve
    try:
        result.resolved = resolve_version(
            config.version_spec(), config.rocm, index, result.profile.os_codename,
        )
    except UnresolvableVersion as e:
        logger.error("%s", e)
        result.error = str(e)
        return

    # 3. Reconcile the host
    if config.host_enabled:
        result.plan = _plan_host(
            config, result.profile, result.resolved, result.identity.user, index,
        )
        result.report = ExecutionReport(operation_id=result.operation_id)
        try:
            execute_host_plan(result.plan, registry, dry_run=config.dry_run, report=result.report)
        except RequiredResourceError as e:
            logger.error("%s", e)
            result.error = str(e)
            result.notices.extend(result.report.notices)
            return
        result.notices.extend(result.report.notices)
    else:
        logger.info("Scope '%s': leaving the host untouched", config.scope)

    # 4. Emit the devcontainer
    if config.container_enabled:
        result.base_image_user = _lookup_base_image_user(
            config, registry, result.resolved, result.identity,
        )
        result.artifacts = generate_devcontainer(
            result.resolved, result.identity, result.base_image_user, config,
        )
        result.notices.append(REOPEN_HINT)
