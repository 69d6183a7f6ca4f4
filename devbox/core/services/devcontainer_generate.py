"""
Devcontainer generation — render and emit the three artifacts.

Flow:
    ResolvedVersion + HostIdentity + base-image user
        → ContainerTarget
        → Dockerfile / devcontainer.json / setup.sh (in memory)
        → emit each file under the overwrite policy

Each file is written atomically (temp file in the same directory, then
rename) and independently: a failure on one does not stop the others.
A file that exists and is not forced is left byte-for-byte untouched.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from devbox.core.models.config import BootstrapConfig, ContainerSettings
from devbox.core.models.host import BaseImageUser, HostIdentity, ResourceState
from devbox.core.models.plan import ActionKind, ManagedResource, ResourceKind
from devbox.core.models.template import ContainerTarget, GeneratedFile, WriteResult
from devbox.core.models.version import ResolvedVersion
from devbox.core.services.generators.devcontainer import generate_devcontainer_json
from devbox.core.services.generators.dockerfile import generate_dockerfile
from devbox.core.services.generators.setup_script import generate_setup_script
from devbox.core.services.host_setup.domain.reconcile import reconcile
from devbox.core.services.host_setup.domain.version_constraint import series_of

logger = logging.getLogger(__name__)


def container_tag(resolved: ResolvedVersion, default_tag: str) -> str:
    """major.minor tag for images and wheel indexes.

    Versions without a numeric series (the ``latest`` alias, garbage)
    fall back to *default_tag*.
    """
    tag = resolved.series or series_of(resolved.version)
    if tag is None:
        logger.warning(
            "Cannot derive a major.minor tag from ROCm %r; using %s",
            resolved.version, default_tag,
        )
        return default_tag
    return tag


def build_target(
    resolved: ResolvedVersion,
    identity: HostIdentity,
    existing_user: BaseImageUser | None,
    config: BootstrapConfig,
) -> ContainerTarget:
    """Combine version, host identity and base-image user into one target."""
    settings: ContainerSettings = config.container
    tag = container_tag(resolved, config.rocm.default_tag)

    if existing_user is not None:
        logger.info(
            "Base image already has UID %d as '%s'; reusing it",
            existing_user.uid, existing_user.name,
        )
        user, reuse = existing_user.name, True
    else:
        user, reuse = settings.default_user, False

    return ContainerTarget(
        rocm_version=resolved.version,
        tag=tag,
        base_image=settings.base_image.format(tag=tag),
        base_image_arg=settings.base_image.format(tag="${ROCM_MM}"),
        torch_index=settings.torch_index.format(tag=tag),
        uid=identity.uid,
        gid=identity.gid,
        user=user,
        reuse_user=reuse,
        render_gid=identity.render_gid,
        video_gid=identity.video_gid,
    )


def render_artifacts(target: ContainerTarget, config: BootstrapConfig) -> list[GeneratedFile]:
    """Render all three artifacts in memory."""
    overwrite = config.force
    return [
        generate_dockerfile(target, overwrite=overwrite),
        generate_devcontainer_json(
            target, config.container,
            overwrite=overwrite, dirname=config.devcontainer_dirname,
        ),
        generate_setup_script(overwrite=overwrite),
    ]


def observe_file(path: Path, content: str) -> ResourceState:
    """Compare an on-disk file with the rendered *content*."""
    if not path.exists():
        return ResourceState.ABSENT
    try:
        current = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ResourceState.MISMATCHED
    return ResourceState.MATCHING if current == content else ResourceState.MISMATCHED


def _atomic_write(path: Path, content: str, executable: bool) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.chmod(0o755 if executable else 0o644)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def emit(artifact: GeneratedFile, target_dir: Path, dry_run: bool = False) -> WriteResult:
    """Write *artifact* under *target_dir* if the overwrite policy allows.

    Args:
        artifact: Fully rendered file.
        target_dir: The devcontainer directory.
        dry_run: Report what would happen without writing.

    Returns:
        WriteResult: ``written``, ``skipped`` (existing file kept),
        ``dry-run`` or ``failed``.
    """
    path = target_dir / artifact.path
    resource = ManagedResource(name=artifact.path, kind=ResourceKind.FILE)
    decision = reconcile(resource, observe_file(path, artifact.content), force=artifact.overwrite)

    if decision.action is ActionKind.SKIP:
        logger.info("%s exists; leaving it untouched (use --force to overwrite)", path)
        return WriteResult(path=str(path), status="skipped", reason=decision.reason)

    if dry_run:
        logger.info("[dry-run] would write %s (%s)", path, decision.reason)
        return WriteResult(path=str(path), status="dry-run", reason=decision.reason)

    try:
        _atomic_write(path, artifact.content, artifact.executable)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        return WriteResult(path=str(path), status="failed", reason=f"write failed: {e}")

    logger.info("Wrote %s", path)
    return WriteResult(path=str(path), status="written", reason=decision.reason)


def emit_all(
    artifacts: list[GeneratedFile],
    target_dir: Path,
    dry_run: bool = False,
) -> list[WriteResult]:
    """Emit every artifact; each one succeeds or fails on its own."""
    return [emit(a, target_dir, dry_run) for a in artifacts]


def generate_devcontainer(
    resolved: ResolvedVersion,
    identity: HostIdentity,
    existing_user: BaseImageUser | None,
    config: BootstrapConfig,
) -> list[WriteResult]:
    """Render and emit the devcontainer for this run."""
    target = build_target(resolved, identity, existing_user, config)
    artifacts = render_artifacts(target, config)
    return emit_all(artifacts, config.devcontainer_dir, dry_run=config.dry_run)
