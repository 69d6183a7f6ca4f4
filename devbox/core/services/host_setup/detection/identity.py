"""
L3 Detection — Host identity, group membership and base-image users.

The container user must line up with the host user (UID/GID) and with
the groups owning /dev/kfd and /dev/dri, or bind mounts and GPU devices
are not usable from inside the devcontainer.
"""

from __future__ import annotations

import grp
import logging
import os
import pwd

from devbox.adapters.registry import AdapterRegistry
from devbox.core.models.action import Action
from devbox.core.models.host import BaseImageUser, HostIdentity
from devbox.core.models.result import Result
from devbox.core.services.host_setup.data.constants import DRI_CARD0, KFD_NODE

logger = logging.getLogger(__name__)


def _group_gid(name: str) -> int | None:
    try:
        return grp.getgrnam(name).gr_gid
    except KeyError:
        return None


def _node_gid(path: str) -> int | None:
    try:
        return os.stat(path).st_gid
    except OSError:
        return None


def current_user() -> str:
    """Login name of the invoking user."""
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        return os.environ.get("USER", "")


def host_identity(
    kfd: str = KFD_NODE,
    dri_card: str = DRI_CARD0,
) -> HostIdentity:
    """Capture UID/GID and the render/video GIDs of this host.

    GIDs come from the group database first and fall back to the
    group owning the device node when the group name is unknown.
    """
    render_gid = _group_gid("render")
    if render_gid is None:
        render_gid = _node_gid(kfd)
    video_gid = _group_gid("video")
    if video_gid is None:
        video_gid = _node_gid(dri_card)

    identity = HostIdentity(
        uid=os.getuid(),
        gid=os.getgid(),
        user=current_user(),
        render_gid=render_gid,
        video_gid=video_gid,
    )
    logger.info(
        "Host identity: %s uid=%d gid=%d render=%s video=%s",
        identity.user or "?", identity.uid, identity.gid,
        identity.render_gid if identity.render_gid is not None else "-",
        identity.video_gid if identity.video_gid is not None else "-",
    )
    return identity


def user_groups(user: str) -> set[str]:
    """Names of every group *user* belongs to, primary included.

    Reads the group database, so memberships added by ``usermod`` are
    visible immediately even though the current session does not have
    them yet.
    """
    try:
        primary = pwd.getpwnam(user).pw_gid
    except KeyError:
        return set()
    names: set[str] = set()
    for gid in os.getgrouplist(user, primary):
        try:
            names.add(grp.getgrgid(gid).gr_name)
        except KeyError:
            continue
    return names


def group_memberships(user: str, groups: list[str]) -> dict[str, bool]:
    """Report membership of *user* in each group of *groups*."""
    member_of = user_groups(user) if user else set()
    return {g: g in member_of for g in groups}


def parse_passwd_line(output: str) -> BaseImageUser | None:
    """Parse the first ``getent passwd`` line from *output*."""
    for line in output.splitlines():
        fields = line.strip().split(":")
        if len(fields) < 4 or not fields[0]:
            continue
        try:
            uid = int(fields[2])
        except ValueError:
            continue
        try:
            gid: int | None = int(fields[3])
        except ValueError:
            gid = None
        return BaseImageUser(name=fields[0], uid=uid, gid=gid)
    return None


def base_image_user(
    registry: AdapterRegistry,
    image: str,
    uid: int,
    timeout: int = 300,
) -> Result[BaseImageUser | None]:
    """Ask the container runtime whether *image* already has *uid*.

    Returns:
        ``Result.success(user)`` when found, ``Result.success(None)`` when
        the image has no such account, and a failure Result when the
        runtime could not be queried (missing docker, pull error).
    """
    if not registry.is_available("docker"):
        return Result.failure("docker is not available to inspect the base image")

    receipt = registry.execute_action(
        Action(
            id=f"inspect:{image}:{uid}",
            name=f"look up UID {uid} in {image}",
            adapter="docker",
            params={"operation": "passwd_lookup", "image": image, "uid": uid, "timeout": timeout},
        )
    )
    if not receipt.ok:
        return Result.failure(receipt.error or "base image query failed")

    found = parse_passwd_line(receipt.output)
    if found is not None and found.uid != uid:
        found = None
    return Result.success(found)
