"""
Domain models — Pydantic types for devbox.

All models are re-exported here for convenient access:

    from devbox.core.models import HostProfile, ResolvedVersion, Decision
"""

from devbox.core.models.action import Action, Receipt
from devbox.core.models.config import BootstrapConfig, ContainerSettings, RocmSettings
from devbox.core.models.host import (
    BaseImageUser,
    HostIdentity,
    HostObservation,
    HostProfile,
    PackageFamily,
    ResourceState,
)
from devbox.core.models.plan import (
    ActionKind,
    Command,
    Decision,
    HostPlan,
    InstallPath,
    ManagedResource,
    PlannedStep,
    ResourceKind,
)
from devbox.core.models.result import Result
from devbox.core.models.template import ContainerTarget, GeneratedFile, WriteResult
from devbox.core.models.version import (
    ResolvedVersion,
    VersionRequest,
    VersionSource,
    VersionSpec,
)

__all__ = [
    "Action",
    "ActionKind",
    "BaseImageUser",
    "BootstrapConfig",
    "Command",
    "ContainerSettings",
    "ContainerTarget",
    "Decision",
    "GeneratedFile",
    "HostIdentity",
    "HostObservation",
    "HostPlan",
    "HostProfile",
    "InstallPath",
    "ManagedResource",
    "PackageFamily",
    "PlannedStep",
    "Receipt",
    "ResolvedVersion",
    "ResourceKind",
    "ResourceState",
    "Result",
    "RocmSettings",
    "VersionRequest",
    "VersionSource",
    "VersionSpec",
    "WriteResult",
]
