"""
BootstrapConfig — the explicit configuration threaded through every stage.

Built once by the config loader from defaults, an optional ``devbox.yml``
and CLI flags. Nothing downstream reads the environment or the current
working directory on its own.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from devbox.core.models.version import LATEST_ALIAS, VersionSpec
from devbox.core.services.host_setup.domain.version_constraint import (
    parse_version,
    series_at_least,
)

Scope = Literal["host", "container", "all"]

# A pin lands verbatim in Dockerfile build args and repository URLs.
_PIN_RE = re.compile(r"^\d+\.\d+(?:\.\d+)?$")


class RocmSettings(BaseModel):
    """Version policy and remote locations for the ROCm platform."""

    default_version: str = "6.4.3"
    minimum: str = "6.4"
    preferred_latest: str = "7.0"
    default_tag: str = "6.4"
    fallback_codename: str = "noble"
    apt_index_url: str = "https://repo.radeon.com/rocm/apt/"
    gpg_key_url: str = "https://repo.radeon.com/rocm/rocm.gpg.key"
    installer_index_url: str = "https://repo.radeon.com/amdgpu-install/"
    installer_codenames: list[str] = Field(
        default_factory=lambda: ["noble", "jammy", "bookworm"],
    )
    driver_modules: list[str] = Field(
        default_factory=lambda: ["amdgpu", "kfd", "amdkfd"],
    )
    network_timeout: int = 10

    @field_validator("default_version", "minimum", "preferred_latest", "default_tag")
    @classmethod
    def _numeric(cls, v: str) -> str:
        if parse_version(v) is None:
            raise ValueError(f"not a major.minor[.patch] version: {v!r}")
        return v

    @model_validator(mode="after")
    def _default_meets_floor(self) -> RocmSettings:
        if not series_at_least(self.default_version, self.minimum):
            raise ValueError(
                f"default_version {self.default_version} is below minimum {self.minimum}"
            )
        return self


class ContainerSettings(BaseModel):
    """What the generated devcontainer looks like."""

    name: str = "AMD AI-MAX 395 (ROCm) Dev"
    base_image: str = "rocm/dev-ubuntu-24.04:{tag}-complete"
    torch_index: str = "https://download.pytorch.org/whl/rocm{tag}"
    default_user: str = "devuser"
    shm_size: str = "16g"
    extensions: list[str] = Field(
        default_factory=lambda: [
            "ms-python.python",
            "ms-toolsai.jupyter",
            "ms-vscode-remote.remote-containers",
        ],
    )
    inspect_timeout: int = 300


class BootstrapConfig(BaseModel):
    """Run configuration for one bootstrap invocation."""

    project_dir: Path = Field(default_factory=Path.cwd)
    devcontainer_dirname: str = ".devcontainer"
    scope: Scope = "all"

    rocm_pin: str | None = None
    want_latest: bool = False

    force: bool = False
    reinstall: bool = False
    install_drivers: bool = True
    install_host_rocm: bool = False
    install_editor: bool = True
    dry_run: bool = False

    required_groups: list[str] = Field(
        default_factory=lambda: ["render", "video", "docker"],
    )
    audit: bool = False

    rocm: RocmSettings = Field(default_factory=RocmSettings)
    container: ContainerSettings = Field(default_factory=ContainerSettings)

    @field_validator("rocm_pin")
    @classmethod
    def _pin_format(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if v != LATEST_ALIAS and not _PIN_RE.match(v):
            raise ValueError(f"ROCm pin must be X.Y, X.Y.Z or '{LATEST_ALIAS}', got {v!r}")
        return v

    @property
    def devcontainer_dir(self) -> Path:
        return self.project_dir / self.devcontainer_dirname

    @property
    def host_enabled(self) -> bool:
        return self.scope in ("host", "all")

    @property
    def container_enabled(self) -> bool:
        return self.scope in ("container", "all")

    def version_spec(self) -> VersionSpec:
        return VersionSpec.from_flags(
            pin=self.rocm_pin,
            latest=self.want_latest,
            minimum=self.rocm.minimum,
        )
