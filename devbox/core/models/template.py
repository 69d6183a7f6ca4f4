"""
Generated file models — used by all devcontainer generators.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class GeneratedFile(BaseModel):
    """A fully rendered artifact, held in memory until written.

    Attributes:
        path:       Path relative to the devcontainer directory.
        content:    Full file content.
        overwrite:  Whether to replace an existing file.
        executable: Whether to set the executable bit after writing.
        reason:     Why this file was generated.
    """

    path: str
    content: str
    overwrite: bool = False
    executable: bool = False
    reason: str = ""


class WriteResult(BaseModel):
    """Outcome of emitting one artifact."""

    path: str
    status: Literal["written", "skipped", "dry-run", "failed"]
    reason: str = ""

    @property
    def written(self) -> bool:
        return self.status == "written"


class ContainerTarget(BaseModel):
    """Everything the devcontainer generators render from.

    Derived once per run from the resolved version, the host identity
    and the base-image user lookup.

    Attributes:
        rocm_version: Resolved ROCm version (``"6.4.3"``, ``"latest"``).
        tag:          major.minor used for image and wheel index tags.
        base_image:   Fully tagged base image reference.
        base_image_arg: The same reference with the tag taken from the
                      ``ROCM_MM`` build arg.
        torch_index:  PyTorch wheel index for this ROCm series.
        uid / gid:    Host identity the container user must match.
        user:         Container login name.
        reuse_user:   True when ``user`` already exists in the base image.
        render_gid / video_gid: Host device-group GIDs, when known.
    """

    rocm_version: str
    tag: str
    base_image: str
    base_image_arg: str = ""
    torch_index: str
    uid: int = 1000
    gid: int = 1000
    user: str = "devuser"
    reuse_user: bool = False
    render_gid: int | None = None
    video_gid: int | None = None
