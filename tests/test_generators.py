"""
Tests for the devcontainer generators — Dockerfile, devcontainer.json, setup.sh.

Rendering only; nothing here writes to disk.
"""

import json

from devbox.core.models.config import BootstrapConfig, ContainerSettings
from devbox.core.models.host import BaseImageUser, HostIdentity
from devbox.core.models.template import ContainerTarget
from devbox.core.models.version import ResolvedVersion, VersionSource
from devbox.core.services.devcontainer_generate import build_target, container_tag
from devbox.core.services.generators.devcontainer import (
    build_descriptor,
    generate_devcontainer_json,
)
from devbox.core.services.generators.dockerfile import generate_dockerfile, render_dockerfile
from devbox.core.services.generators.setup_script import generate_setup_script


def _target(**overrides) -> ContainerTarget:
    values = dict(
        rocm_version="6.4.3",
        tag="6.4",
        base_image="rocm/dev-ubuntu-24.04:6.4-complete",
        base_image_arg="rocm/dev-ubuntu-24.04:${ROCM_MM}-complete",
        torch_index="https://download.pytorch.org/whl/rocm6.4",
        uid=1000,
        gid=1000,
        user="devuser",
        render_gid=992,
        video_gid=44,
    )
    values.update(overrides)
    return ContainerTarget(**values)


# ── Target ──────────────────────────────────────────────────────


class TestContainerTarget:
    def test_tag_from_series(self):
        assert container_tag(ResolvedVersion(version="6.4.3", series="6.4"), "6.4") == "6.4"

    def test_alias_uses_default_tag(self):
        alias = ResolvedVersion(version="latest", series=None, source=VersionSource.ALIAS)
        assert container_tag(alias, "6.4") == "6.4"

    def test_build_target_new_user(self, config, identity):
        resolved = ResolvedVersion(version="7.0", series="7.0")
        target = build_target(resolved, identity, None, config)
        assert target.tag == "7.0"
        assert target.base_image == "rocm/dev-ubuntu-24.04:7.0-complete"
        assert target.base_image_arg == "rocm/dev-ubuntu-24.04:${ROCM_MM}-complete"
        assert target.torch_index == "https://download.pytorch.org/whl/rocm7.0"
        assert target.user == "devuser"
        assert not target.reuse_user
        assert (target.uid, target.gid) == (1000, 1000)
        assert (target.render_gid, target.video_gid) == (992, 44)

    def test_build_target_reuses_image_user(self, config, identity):
        resolved = ResolvedVersion(version="6.4.3", series="6.4")
        existing = BaseImageUser(name="ubuntu", uid=1000, gid=1000)
        target = build_target(resolved, identity, existing, config)
        assert target.user == "ubuntu"
        assert target.reuse_user

    def test_tag_not_replaced_inside_image_name(self, tmp_path):
        # "4.0" also appears in "24.04"; only the {tag} slot changes
        config = BootstrapConfig(project_dir=tmp_path)
        target = build_target(ResolvedVersion(version="4.0", series="4.0"), HostIdentity(), None, config)
        assert target.base_image_arg.startswith("rocm/dev-ubuntu-24.04:")


# ── Dockerfile ──────────────────────────────────────────────────


class TestDockerfile:
    def test_build_args_before_from(self):
        text = render_dockerfile(_target())
        before_from = text.split("\nFROM ", 1)[0]
        assert "ARG ROCM_SERIES=6.4.3" in before_from
        assert "ARG ROCM_MM=6.4" in before_from
        assert "ARG TORCH_INDEX=https://download.pytorch.org/whl/rocm6.4" in before_from
        assert "ARG USER_UID=1000" in before_from
        assert "ARG USER_GID=1000" in before_from

    def test_from_uses_build_arg(self):
        text = render_dockerfile(_target())
        assert "FROM rocm/dev-ubuntu-24.04:${ROCM_MM}-complete" in text

    def test_from_falls_back_to_literal_image(self):
        text = render_dockerfile(_target(base_image_arg=""))
        assert "FROM rocm/dev-ubuntu-24.04:6.4-complete" in text

    def test_python_stack(self):
        text = render_dockerfile(_target())
        assert "uv venv /opt/venv" in text
        assert "--index-url ${TORCH_INDEX}" in text
        assert '"vllm>=0.6.4"' in text
        assert "ENV PATH=/opt/venv/bin:${PATH}" in text

    def test_creates_user(self):
        text = render_dockerfile(_target())
        assert "useradd --uid ${USER_UID} --gid ${USER_GID}" in text
        assert "/etc/sudoers.d/99-devuser" in text
        assert "chown -R ${USER_UID}:${USER_GID} /opt/venv" in text

    def test_reuses_user(self):
        text = render_dockerfile(_target(user="ubuntu", reuse_user=True))
        assert "useradd" not in text
        assert "usermod -aG" in text
        assert "/etc/sudoers.d/99-ubuntu" in text
        assert "USER ubuntu" in text

    def test_grafts_device_gids(self):
        text = render_dockerfile(_target())
        assert "groupadd --gid 992 host_render" in text
        assert "groupadd --gid 44 host_video" in text

    def test_no_grafts_without_gids(self):
        text = render_dockerfile(_target(render_gid=None, video_gid=None))
        assert "host_render" not in text
        assert "host_video" not in text

    def test_footer(self):
        text = render_dockerfile(_target())
        assert text.rstrip().endswith('CMD ["/bin/bash"]')
        assert "WORKDIR /workspace" in text

    def test_generated_file(self):
        gen = generate_dockerfile(_target(), overwrite=True)
        assert gen.path == "Dockerfile"
        assert gen.overwrite
        assert not gen.executable
        assert "creating devuser" in gen.reason

    def test_deterministic(self):
        assert render_dockerfile(_target()) == render_dockerfile(_target())


# ── devcontainer.json ───────────────────────────────────────────


class TestDevcontainerJson:
    def test_descriptor(self):
        doc = build_descriptor(_target(), ContainerSettings())
        assert doc["build"] == {
            "dockerfile": "Dockerfile",
            "args": {"USER_UID": "1000", "USER_GID": "1000"},
        }
        assert doc["workspaceFolder"] == "/workspace"
        assert doc["remoteUser"] == "devuser"
        assert doc["containerEnv"] == {"VLLM_USE_ROCM": "1"}
        assert doc["overrideCommand"] is True
        assert doc["postCreateCommand"] == "bash ${containerWorkspaceFolder}/.devcontainer/setup.sh"

    def test_gpu_run_args(self):
        run_args = build_descriptor(_target(), ContainerSettings(shm_size="32g"))["runArgs"]
        assert "--device=/dev/kfd" in run_args
        assert "--device=/dev/dri" in run_args
        assert "--group-add=992" in run_args
        assert "--group-add=44" in run_args
        assert "--ipc=host" in run_args
        assert "--shm-size=32g" in run_args

    def test_group_names_without_gids(self):
        run_args = build_descriptor(
            _target(render_gid=None, video_gid=None), ContainerSettings(),
        )["runArgs"]
        assert "--group-add=render" in run_args
        assert "--group-add=video" in run_args

    def test_extensions(self):
        doc = build_descriptor(_target(), ContainerSettings())
        assert "ms-python.python" in doc["customizations"]["vscode"]["extensions"]

    def test_custom_dirname(self):
        gen = generate_devcontainer_json(_target(), ContainerSettings(), dirname=".dc")
        assert json.loads(gen.content)["postCreateCommand"].endswith("/.dc/setup.sh")

    def test_valid_json(self):
        gen = generate_devcontainer_json(_target(), ContainerSettings())
        assert gen.path == "devcontainer.json"
        assert gen.content.endswith("\n")
        assert json.loads(gen.content)["name"] == ContainerSettings().name


# ── setup.sh ────────────────────────────────────────────────────


class TestSetupScript:
    def test_executable(self):
        gen = generate_setup_script()
        assert gen.path == "setup.sh"
        assert gen.executable
        assert gen.content.startswith("#!/usr/bin/env bash\n")

    def test_fails_without_hip(self):
        content = generate_setup_script().content
        assert "import torch" in content
        assert "torch.version" in content
        assert "sys.exit(1)" in content
        assert "OK: ROCm PyTorch environment ready." in content
