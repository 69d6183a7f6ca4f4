"""
Tests for the CLI — flag wiring, output and exit codes.

Use cases are patched; these tests only check what the commands pass
in and how they report what comes back.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from devbox.core.engine.executor import ExecutionReport, StepOutcome
from devbox.core.models.host import HostIdentity, HostProfile, PackageFamily
from devbox.core.models.template import WriteResult
from devbox.core.models.version import ResolvedVersion, VersionSource
from devbox.core.use_cases.bootstrap import (
    REOPEN_HINT,
    BootstrapResult,
    ProbeResult,
    ResolveResult,
)
from devbox.main import cli
from tests.conftest import make_observation

USE_CASE = "devbox.core.use_cases.bootstrap"


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("devbox.main.setup_logging"):
        yield


@pytest.fixture
def runner():
    return CliRunner()


def _ok_result(tmp_path) -> BootstrapResult:
    return BootstrapResult(
        operation_id="run-1",
        resolved=ResolvedVersion(version="6.4.3", series="6.4"),
        report=ExecutionReport(
            operation_id="run-1",
            outcomes=[StepOutcome(resource="docker-engine", action="skip", reason="already installed")],
        ),
        artifacts=[
            WriteResult(path=str(tmp_path / ".devcontainer" / "Dockerfile"), status="written"),
        ],
        notices=[REOPEN_HINT],
    )


# ── Top level ───────────────────────────────────────────────────


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("bootstrap", "host", "rocm"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "devbox" in result.output

    def test_bad_config_file(self, runner, tmp_path):
        bad = tmp_path / "devbox.yml"
        bad.write_text("nonsense: true\n")
        result = runner.invoke(cli, ["-c", str(bad), "rocm", "resolve"])
        assert result.exit_code == 1
        assert "Unknown keys" in result.output


# ── bootstrap ───────────────────────────────────────────────────


class TestBootstrapCommand:
    def test_flags_reach_config(self, runner, tmp_path):
        run = MagicMock(return_value=_ok_result(tmp_path))
        with patch(f"{USE_CASE}.run_bootstrap", run):
            result = runner.invoke(cli, [
                "bootstrap", "--project", str(tmp_path),
                "--rocm", "6.4.1", "--force", "--reinstall",
                "--no-install-drivers", "--no-code", "--dry-run",
            ])

        assert result.exit_code == 0, result.output
        config = run.call_args.args[0]
        assert config.rocm_pin == "6.4.1"
        assert config.force and config.reinstall and config.dry_run
        assert not config.install_drivers
        assert not config.install_editor
        assert config.scope == "all"

    def test_devcontainer_only(self, runner, tmp_path):
        run = MagicMock(return_value=_ok_result(tmp_path))
        with patch(f"{USE_CASE}.run_bootstrap", run):
            runner.invoke(cli, ["bootstrap", "--project", str(tmp_path), "--devcontainer-only"])
        assert run.call_args.args[0].scope == "container"

    def test_unset_flags_keep_defaults(self, runner, tmp_path):
        run = MagicMock(return_value=_ok_result(tmp_path))
        with patch(f"{USE_CASE}.run_bootstrap", run):
            runner.invoke(cli, ["bootstrap", "--project", str(tmp_path)])
        config = run.call_args.args[0]
        assert config.install_drivers and config.install_editor
        assert not config.force and not config.dry_run

    def test_human_output(self, runner, tmp_path):
        with patch(f"{USE_CASE}.run_bootstrap", return_value=_ok_result(tmp_path)):
            result = runner.invoke(cli, ["bootstrap", "--project", str(tmp_path)])
        assert result.exit_code == 0
        assert "ROCm 6.4.3" in result.output
        assert "docker-engine" in result.output
        assert "Dockerfile" in result.output
        assert "Reopen in Container" in result.output

    def test_error_exits_1(self, runner, tmp_path):
        failed = BootstrapResult(error="Required resource 'docker-engine' could not be installed")
        with patch(f"{USE_CASE}.run_bootstrap", return_value=failed):
            result = runner.invoke(cli, ["bootstrap", "--project", str(tmp_path)])
        assert result.exit_code == 1
        assert "❌" in result.output
        assert "docker-engine" in result.output

    def test_json(self, runner, tmp_path):
        with patch(f"{USE_CASE}.run_bootstrap", return_value=_ok_result(tmp_path)):
            result = runner.invoke(cli, ["bootstrap", "--project", str(tmp_path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "ok"
        assert data["rocm"]["version"] == "6.4.3"


# ── rocm ────────────────────────────────────────────────────────


class TestRocmCommands:
    def test_resolve(self, runner):
        resolved = ResolveResult(
            resolved=ResolvedVersion(version="7.0", series="7.0", source=VersionSource.PREFERRED),
            tag="7.0",
        )
        run = MagicMock(return_value=resolved)
        with patch(f"{USE_CASE}.run_resolve", run):
            result = runner.invoke(cli, ["rocm", "resolve", "--latest"])
        assert result.exit_code == 0
        assert "ROCm 7.0" in result.output
        assert "preferred" in result.output
        assert run.call_args.args[0].want_latest

    def test_resolve_error(self, runner):
        with patch(f"{USE_CASE}.run_resolve", return_value=ResolveResult(error="no version")):
            result = runner.invoke(cli, ["rocm", "resolve"])
        assert result.exit_code == 1

    def test_versions(self, runner):
        with patch(f"{USE_CASE}.run_versions", return_value=["6.2.4", "6.4.3"]):
            result = runner.invoke(cli, ["rocm", "versions"])
        assert result.exit_code == 0
        assert "6.2.4  (below minimum 6.4)" in result.output
        assert "6.4.3\n" in result.output

    def test_versions_unreachable(self, runner):
        with patch(f"{USE_CASE}.run_versions", return_value=[]):
            result = runner.invoke(cli, ["rocm", "versions"])
        assert result.exit_code == 1


# ── host ────────────────────────────────────────────────────────


class TestHostCommands:
    def test_probe(self, runner):
        probed = ProbeResult(
            profile=HostProfile(package_family=PackageFamily.APT, os_codename="noble", distro_id="ubuntu"),
            identity=HostIdentity(user="alice", render_gid=992),
            observation=make_observation(),
        )
        with patch(f"{USE_CASE}.run_probe", return_value=probed):
            result = runner.invoke(cli, ["host", "probe"])
        assert result.exit_code == 0
        assert "noble" in result.output
        assert "render=992 video=-" in result.output
        assert "docker-engine" in result.output

    def test_probe_json(self, runner):
        probed = ProbeResult(
            profile=HostProfile(), identity=HostIdentity(), observation=make_observation(),
        )
        with patch(f"{USE_CASE}.run_probe", return_value=probed):
            result = runner.invoke(cli, ["host", "probe", "--json"])
        data = json.loads(result.output)
        assert data["observation"]["resources"]["docker-engine"] == "present-matching"

    def test_plan_flags(self, runner):
        from devbox.core.use_cases.bootstrap import PlanResult

        run = MagicMock(return_value=PlanResult(error="stop here"))
        with patch(f"{USE_CASE}.run_plan", run):
            result = runner.invoke(cli, ["host", "plan", "--install-host-rocm", "--no-code"])
        assert result.exit_code == 1
        config = run.call_args.args[0]
        assert config.install_host_rocm
        assert not config.install_editor
