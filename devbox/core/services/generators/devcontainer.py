"""
devcontainer.json generator — how VS Code builds and runs the container.

GPU access needs the kfd and dri device nodes passed through, and the
container process must belong to the groups owning them. Numeric GIDs
are used when the host revealed them: group *names* inside the image
do not necessarily map to the host's GIDs.
"""

from __future__ import annotations

import json

from devbox.core.models.config import ContainerSettings
from devbox.core.models.template import ContainerTarget, GeneratedFile

_WORKSPACE = "/workspace"


def _group_add(gid: int | None, name: str) -> str:
    return f"--group-add={gid if gid is not None else name}"


def build_descriptor(
    target: ContainerTarget,
    settings: ContainerSettings,
    dirname: str = ".devcontainer",
) -> dict:
    """The devcontainer.json document as a dict."""
    return {
        "name": settings.name,
        "build": {
            "dockerfile": "Dockerfile",
            "args": {
                "USER_UID": str(target.uid),
                "USER_GID": str(target.gid),
            },
        },
        "workspaceMount": (
            f"source=${{localWorkspaceFolder}},target={_WORKSPACE},type=bind,consistency=cached"
        ),
        "workspaceFolder": _WORKSPACE,
        "runArgs": [
            "--device=/dev/kfd",
            "--device=/dev/dri",
            _group_add(target.render_gid, "render"),
            _group_add(target.video_gid, "video"),
            "--ipc=host",
            f"--shm-size={settings.shm_size}",
        ],
        "containerEnv": {"VLLM_USE_ROCM": "1"},
        "remoteUser": target.user,
        "postCreateCommand": f"bash ${{containerWorkspaceFolder}}/{dirname}/setup.sh",
        "overrideCommand": True,
        "customizations": {
            "vscode": {
                "settings": {
                    "terminal.integrated.shell.linux": "/bin/bash",
                    "terminal.integrated.defaultProfile.linux": "bash",
                },
                "extensions": list(settings.extensions),
            },
        },
    }


def generate_devcontainer_json(
    target: ContainerTarget,
    settings: ContainerSettings,
    *,
    overwrite: bool = False,
    output_path: str = "devcontainer.json",
    dirname: str = ".devcontainer",
) -> GeneratedFile:
    """Generate devcontainer.json for *target*.

    *dirname* is the project-relative directory the artifacts live in;
    the post-create command runs setup.sh from there.
    """
    content = json.dumps(build_descriptor(target, settings, dirname), indent=2) + "\n"
    return GeneratedFile(
        path=output_path,
        content=content,
        overwrite=overwrite,
        reason=f"devcontainer descriptor for user {target.user}",
    )
