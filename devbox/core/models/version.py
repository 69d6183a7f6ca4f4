"""
Version models — requested ROCm version and what it resolved to.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class VersionRequest(str, Enum):
    """How the operator asked for a version."""

    EXPLICIT = "explicit"
    LATEST = "latest"
    DEFAULT = "default"


class VersionSource(str, Enum):
    """Which resolution step produced the final version."""

    PIN = "pin"
    PREFERRED = "preferred"
    ALIAS = "alias"
    INDEX = "index"
    DEFAULT = "default"
    FLOOR_FALLBACK = "floor-fallback"


LATEST_ALIAS = "latest"


class VersionSpec(BaseModel):
    """A version request plus the floor it must satisfy."""

    model_config = ConfigDict(frozen=True)

    requested: VersionRequest = VersionRequest.DEFAULT
    pin: str | None = None
    minimum: str = "6.4"

    @classmethod
    def from_flags(cls, pin: str | None, latest: bool, minimum: str) -> VersionSpec:
        """Build a spec from CLI-style flags. A pin beats ``latest``."""
        if pin:
            return cls(requested=VersionRequest.EXPLICIT, pin=pin, minimum=minimum)
        if latest:
            return cls(requested=VersionRequest.LATEST, minimum=minimum)
        return cls(requested=VersionRequest.DEFAULT, minimum=minimum)


class ResolvedVersion(BaseModel):
    """The single concrete version chosen for this run.

    Attributes:
        version:       As selected, e.g. ``"6.4.3"``, ``"7.0"`` or ``"latest"``.
        series:        major.minor, e.g. ``"6.4"``; None for the alias.
        fallback_used: True when the default replaced the requested value.
        source:        Which resolution step won.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    series: str | None = None
    fallback_used: bool = False
    source: VersionSource = VersionSource.DEFAULT

    @property
    def is_alias(self) -> bool:
        return self.version == LATEST_ALIAS
