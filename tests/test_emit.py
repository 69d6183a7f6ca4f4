"""
Tests for artifact emission — overwrite policy, atomic writes, dry-run.
"""

import os
from unittest.mock import patch

from devbox.core.models.config import BootstrapConfig
from devbox.core.models.host import BaseImageUser, ResourceState
from devbox.core.models.template import GeneratedFile
from devbox.core.models.version import ResolvedVersion
from devbox.core.services.devcontainer_generate import (
    emit,
    emit_all,
    generate_devcontainer,
    observe_file,
)

RESOLVED = ResolvedVersion(version="6.4.3", series="6.4")
ARTIFACTS = {"Dockerfile", "devcontainer.json", "setup.sh"}


class TestObserveFile:
    def test_states(self, tmp_path):
        f = tmp_path / "x"
        assert observe_file(f, "a") is ResourceState.ABSENT
        f.write_text("a")
        assert observe_file(f, "a") is ResourceState.MATCHING
        assert observe_file(f, "b") is ResourceState.MISMATCHED


class TestEmit:
    def test_writes_new_file(self, tmp_path):
        result = emit(GeneratedFile(path="a.txt", content="hello\n"), tmp_path)
        assert result.status == "written"
        assert (tmp_path / "a.txt").read_text() == "hello\n"

    def test_executable_bit(self, tmp_path):
        emit(GeneratedFile(path="run.sh", content="#!/bin/sh\n", executable=True), tmp_path)
        assert os.access(tmp_path / "run.sh", os.X_OK)

    def test_existing_file_untouched(self, tmp_path):
        f = tmp_path / "a.txt"
        f.write_bytes(b"user edits\r\n")
        result = emit(GeneratedFile(path="a.txt", content="generated\n"), tmp_path)
        assert result.status == "skipped"
        assert "--force" in result.reason
        assert f.read_bytes() == b"user edits\r\n"

    def test_force_overwrites(self, tmp_path):
        f = tmp_path / "a.txt"
        f.write_text("user edits\n")
        result = emit(GeneratedFile(path="a.txt", content="generated\n", overwrite=True), tmp_path)
        assert result.written
        assert f.read_text() == "generated\n"

    def test_dry_run_writes_nothing(self, tmp_path):
        result = emit(GeneratedFile(path="a.txt", content="x"), tmp_path, dry_run=True)
        assert result.status == "dry-run"
        assert not (tmp_path / "a.txt").exists()

    def test_creates_directory(self, tmp_path):
        emit(GeneratedFile(path="a.txt", content="x"), tmp_path / "nested" / "dir")
        assert (tmp_path / "nested" / "dir" / "a.txt").is_file()

    def test_no_temp_files_left(self, tmp_path):
        emit(GeneratedFile(path="a.txt", content="x"), tmp_path)
        assert [p.name for p in tmp_path.iterdir()] == ["a.txt"]

    def test_failure_is_isolated(self, tmp_path):
        artifacts = [
            GeneratedFile(path="first.txt", content="1"),
            GeneratedFile(path="second.txt", content="2"),
        ]
        real_replace = type(tmp_path).replace

        def flaky_replace(self, target):
            if str(target).endswith("first.txt"):
                raise PermissionError("read-only")
            return real_replace(self, target)

        with patch.object(type(tmp_path), "replace", flaky_replace):
            results = emit_all(artifacts, tmp_path)

        assert [r.status for r in results] == ["failed", "written"]
        assert "read-only" in results[0].reason
        assert (tmp_path / "second.txt").read_text() == "2"
        assert not (tmp_path / "first.txt").exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["second.txt"]


class TestGenerateDevcontainer:
    def test_writes_three_files(self, config, identity):
        results = generate_devcontainer(RESOLVED, identity, None, config)
        assert [r.status for r in results] == ["written"] * 3
        produced = {p.name for p in config.devcontainer_dir.iterdir()}
        assert produced == ARTIFACTS
        assert os.access(config.devcontainer_dir / "setup.sh", os.X_OK)

    def test_second_run_skips_and_keeps_bytes(self, config, identity):
        generate_devcontainer(RESOLVED, identity, None, config)
        dockerfile = config.devcontainer_dir / "Dockerfile"
        dockerfile.write_text(dockerfile.read_text() + "# my tweak\n")
        before = {p.name: p.read_bytes() for p in config.devcontainer_dir.iterdir()}

        results = generate_devcontainer(RESOLVED, identity, None, config)

        assert [r.status for r in results] == ["skipped"] * 3
        after = {p.name: p.read_bytes() for p in config.devcontainer_dir.iterdir()}
        assert after == before

    def test_force_regenerates(self, tmp_path, identity):
        config = BootstrapConfig(project_dir=tmp_path)
        generate_devcontainer(RESOLVED, identity, None, config)
        (config.devcontainer_dir / "Dockerfile").write_text("stale\n")

        forced = config.model_copy(update={"force": True})
        results = generate_devcontainer(RESOLVED, identity, None, forced)

        assert [r.status for r in results] == ["written"] * 3
        assert "FROM rocm/dev-ubuntu-24.04" in (config.devcontainer_dir / "Dockerfile").read_text()

    def test_reused_user_reaches_all_files(self, config, identity):
        existing = BaseImageUser(name="ubuntu", uid=1000, gid=1000)
        generate_devcontainer(RESOLVED, identity, existing, config)
        assert "USER ubuntu" in (config.devcontainer_dir / "Dockerfile").read_text()
        assert '"remoteUser": "ubuntu"' in (config.devcontainer_dir / "devcontainer.json").read_text()

    def test_dry_run(self, tmp_path, identity):
        config = BootstrapConfig(project_dir=tmp_path, dry_run=True)
        results = generate_devcontainer(RESOLVED, identity, None, config)
        assert [r.status for r in results] == ["dry-run"] * 3
        assert not config.devcontainer_dir.exists()
