"""
Dockerfile generator — ROCm + PyTorch + vLLM development image.

The image is built FROM the ROCm "complete" base for the resolved
series, installs a build toolchain, uv, a venv at /opt/venv, PyTorch
wheels from the matching ROCm index and vLLM, then sets up the login
user so its UID/GID match the host.
"""

from __future__ import annotations

from devbox.core.models.template import ContainerTarget, GeneratedFile


# ── Image body (shared by both user variants) ───────────────────


_HEADER = """\
# ROCm {rocm_version} development image (generated by devbox).
ARG ROCM_SERIES={rocm_version}
ARG ROCM_MM={tag}
ARG TORCH_INDEX={torch_index}
ARG USER_UID={uid}
ARG USER_GID={gid}

FROM {from_image}

ARG ROCM_SERIES
ARG TORCH_INDEX
ARG USER_UID
ARG USER_GID

ENV DEBIAN_FRONTEND=noninteractive \\
    UV_NO_MODIFY_PATH=1 \\
    PIP_DISABLE_PIP_VERSION_CHECK=1 \\
    PYTHONDONTWRITEBYTECODE=1 \\
    VLLM_USE_ROCM=1

RUN apt-get update && apt-get install -y --no-install-recommends \\
        git build-essential cmake ninja-build \\
        python3 python3-venv python3-pip clang \\
        wget curl ca-certificates pkg-config sudo \\
    && rm -rf /var/lib/apt/lists/*

# ── Python toolchain ────────────────────────────────────────────
RUN curl -LsSf https://astral.sh/uv/install.sh | bash \\
    && ln -sf /root/.local/bin/uv /usr/local/bin/uv

RUN uv venv /opt/venv \\
    && /opt/venv/bin/python -m ensurepip --upgrade \\
    && /opt/venv/bin/python -m pip install --upgrade pip
ENV PATH=/opt/venv/bin:${{PATH}}

# PyTorch built for this ROCm series, then vLLM
RUN pip install --no-cache-dir "torch>=2.5" torchvision torchaudio \\
        --index-url ${{TORCH_INDEX}}
RUN pip install --no-cache-dir "vllm>=0.6.4"
"""

_REUSE_USER = """\
# ── User: reuse '{user}' (UID {uid} already exists in the base image) ──
RUN (getent group ${{USER_GID}} >/dev/null || groupadd --gid ${{USER_GID}} hostgroup) \\
    && usermod -aG "$(getent group ${{USER_GID}} | cut -d: -f1)" {user} \\
    && echo "{user} ALL=(ALL) NOPASSWD:ALL" > /etc/sudoers.d/99-{user} \\
    && chmod 0440 /etc/sudoers.d/99-{user} \\
    && chown -R ${{USER_UID}}:${{USER_GID}} /opt/venv
"""

_CREATE_USER = """\
# ── User: create '{user}' matching the host UID/GID ─────────────
RUN (getent group ${{USER_GID}} >/dev/null || groupadd --gid ${{USER_GID}} {user}) \\
    && useradd --uid ${{USER_UID}} --gid ${{USER_GID}} --create-home --shell /bin/bash {user} \\
    && echo "{user} ALL=(ALL) NOPASSWD:ALL" > /etc/sudoers.d/99-{user} \\
    && chmod 0440 /etc/sudoers.d/99-{user} \\
    && chown -R ${{USER_UID}}:${{USER_GID}} /opt/venv
"""

# Join the group that owns GID {gid} in the image, creating host_{name} if none does.
_GRAFT_GROUP = """\
RUN g="$(getent group {gid} | cut -d: -f1)"; \\
    if [ -z "$g" ]; then groupadd --gid {gid} host_{name} && g=host_{name}; fi; \\
    usermod -aG "$g" {user}
"""

_FOOTER = """\
USER {user}
WORKDIR /workspace
CMD ["/bin/bash"]
"""


def _graft_device_groups(target: ContainerTarget) -> str:
    grafts = [
        _GRAFT_GROUP.format(gid=gid, name=name, user=target.user)
        for name, gid in (("render", target.render_gid), ("video", target.video_gid))
        if gid is not None
    ]
    if not grafts:
        return ""
    return "# ── GPU device groups (host GIDs) ─────────────────────────────\n" + "".join(grafts)


def render_dockerfile(target: ContainerTarget) -> str:
    """Render the full Dockerfile text for *target*."""
    from_image = target.base_image_arg or target.base_image
    header = _HEADER.format(
        rocm_version=target.rocm_version,
        tag=target.tag,
        torch_index=target.torch_index,
        uid=target.uid,
        gid=target.gid,
        from_image=from_image,
    )
    user_block = (_REUSE_USER if target.reuse_user else _CREATE_USER).format(
        user=target.user, uid=target.uid,
    )
    return "\n".join(
        part for part in (
            header,
            user_block,
            _graft_device_groups(target),
            _FOOTER.format(user=target.user),
        ) if part
    )


def generate_dockerfile(
    target: ContainerTarget,
    *,
    overwrite: bool = False,
    output_path: str = "Dockerfile",
) -> GeneratedFile:
    """Generate the devcontainer Dockerfile.

    Args:
        target: Rendered container parameters.
        overwrite: Replace an existing file.
        output_path: Path relative to the devcontainer directory.
    """
    variant = f"reusing {target.user}" if target.reuse_user else f"creating {target.user}"
    return GeneratedFile(
        path=output_path,
        content=render_dockerfile(target),
        overwrite=overwrite,
        reason=f"ROCm {target.tag} image, {variant}",
    )
