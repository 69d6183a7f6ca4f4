"""
Host models — what the probe observed about the machine.

All of these are derived fresh on every run from the live host and are
never persisted. The source of truth is always the machine itself.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PackageFamily(str, Enum):
    """Package manager family, detected in priority order."""

    APT = "apt"
    DNF = "dnf"
    ZYPPER = "zypper"
    NONE = "none"

    @property
    def supported(self) -> bool:
        return self is not PackageFamily.NONE


class ResourceState(str, Enum):
    """Tri-state observation of a managed resource."""

    ABSENT = "absent"
    MATCHING = "present-matching"
    MISMATCHED = "present-mismatched"


class HostProfile(BaseModel):
    """Distribution identity of the host. Immutable once probed."""

    model_config = ConfigDict(frozen=True)

    package_family: PackageFamily = PackageFamily.NONE
    os_codename: str = ""
    distro_id: str = ""
    distro_version: str = ""

    @property
    def can_mutate(self) -> bool:
        """Whether host-mutating operations are possible at all."""
        return self.package_family.supported


class HostIdentity(BaseModel):
    """Numeric identity of the invoking user, captured at run start.

    ``render_gid`` / ``video_gid`` are None when neither the group
    database nor the device nodes revealed them.
    """

    model_config = ConfigDict(frozen=True)

    uid: int = 1000
    gid: int = 1000
    user: str = ""
    render_gid: int | None = None
    video_gid: int | None = None


class BaseImageUser(BaseModel):
    """An account already defined inside the container base image."""

    model_config = ConfigDict(frozen=True)

    name: str
    uid: int
    gid: int | None = None


class HostObservation(BaseModel):
    """Everything the reconciler needs to compare against the target.

    ``resources`` maps a managed-resource name (``docker-engine``,
    ``group:render`` …) to its observed state.
    """

    resources: dict[str, ResourceState] = Field(default_factory=dict)
    driver_modules: list[str] = Field(default_factory=list)
    device_nodes: list[str] = Field(default_factory=list)
    groups: dict[str, bool] = Field(default_factory=dict)
    missing_packages: list[str] = Field(default_factory=list)
    snap_editor: bool = False
    microsoft_sources: list[str] = Field(default_factory=list)

    def state_of(self, resource: str) -> ResourceState:
        return self.resources.get(resource, ResourceState.ABSENT)

    @property
    def driver_loaded(self) -> bool:
        return bool(self.driver_modules)

    @property
    def devices_present(self) -> bool:
        return bool(self.device_nodes)
