"""
Tests for configuration — defaults, devbox.yml loading, flag precedence.
"""

from pathlib import Path

import pytest

from devbox.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    build_config,
    find_config_file,
    load_file_settings,
)
from devbox.core.models.config import BootstrapConfig, RocmSettings
from devbox.core.models.version import VersionRequest


# ── Defaults ────────────────────────────────────────────────────


class TestDefaults:
    def test_bootstrap_defaults(self, tmp_path):
        config = BootstrapConfig(project_dir=tmp_path)
        assert config.scope == "all"
        assert config.host_enabled and config.container_enabled
        assert config.install_drivers
        assert not config.install_host_rocm
        assert config.install_editor
        assert not config.force and not config.reinstall
        assert config.required_groups == ["render", "video", "docker"]
        assert config.devcontainer_dir == tmp_path / ".devcontainer"

    def test_rocm_defaults(self):
        settings = RocmSettings()
        assert settings.default_version == "6.4.3"
        assert settings.minimum == "6.4"
        assert settings.preferred_latest == "7.0"

    def test_container_scope(self, tmp_path):
        config = BootstrapConfig(project_dir=tmp_path, scope="container")
        assert not config.host_enabled
        assert config.container_enabled

    def test_default_below_floor_rejected(self):
        with pytest.raises(ValueError):
            RocmSettings(default_version="6.2.4", minimum="6.4")

    def test_non_numeric_default_rejected(self):
        with pytest.raises(ValueError):
            RocmSettings(default_version="latest")

    def test_version_spec(self, tmp_path):
        config = BootstrapConfig(project_dir=tmp_path, rocm_pin="6.4.1", want_latest=True)
        spec = config.version_spec()
        assert spec.requested is VersionRequest.EXPLICIT
        assert spec.minimum == "6.4"

    @pytest.mark.parametrize("pin", ["6.4", "6.4.3", "7.0", "latest", " 6.4.1 "])
    def test_pin_accepted(self, tmp_path, pin):
        config = BootstrapConfig(project_dir=tmp_path, rocm_pin=pin)
        assert config.rocm_pin == pin.strip()

    @pytest.mark.parametrize("pin", ["6.4;x", "7.0 foo", "6", "v6.4", "6.4.3-rc1", "$(id)"])
    def test_pin_rejected(self, tmp_path, pin):
        with pytest.raises(ValueError, match="ROCm pin"):
            BootstrapConfig(project_dir=tmp_path, rocm_pin=pin)

    def test_bad_pin_from_flags_is_config_error(self, tmp_path):
        with pytest.raises(ConfigError, match="ROCm pin"):
            build_config({"project_dir": tmp_path, "rocm_pin": "6.4;rm"}, search=False)


# ── devbox.yml ──────────────────────────────────────────────────


class TestFileSettings:
    def test_find_walks_up(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("audit: true\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / CONFIG_FILE).resolve()

    def test_find_none(self, tmp_path):
        nested = tmp_path / "deep"
        nested.mkdir()
        found = find_config_file(nested)
        assert found is None or not str(found).startswith(str(tmp_path))

    def test_empty_file(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("")
        assert load_file_settings(f) == {}

    def test_invalid_yaml(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("rocm: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_file_settings(f)

    def test_not_a_mapping(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("- one\n- two\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_file_settings(f)

    def test_unknown_keys(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("force: true\n")
        with pytest.raises(ConfigError, match="Unknown keys"):
            load_file_settings(f)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_file_settings(tmp_path / "nope.yml")


# ── build_config ────────────────────────────────────────────────


class TestBuildConfig:
    def test_no_file(self, tmp_path):
        config = build_config({"project_dir": str(tmp_path)}, search=False)
        assert config.project_dir == Path(tmp_path)

    def test_file_values_applied(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text(
            "audit: true\n"
            "container:\n"
            "  shm_size: 32g\n"
            "rocm:\n"
            "  default_version: '6.4.1'\n"
        )
        config = build_config({"project_dir": str(tmp_path)})
        assert config.audit
        assert config.container.shm_size == "32g"
        assert config.rocm.default_version == "6.4.1"

    def test_flags_beat_file(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("install_editor: true\n")
        config = build_config({"install_editor": False}, config_path=f)
        assert not config.install_editor

    def test_none_flags_do_not_mask_file(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("install_drivers: false\n")
        config = build_config({"install_drivers": None}, config_path=f)
        assert not config.install_drivers

    def test_validation_error(self, tmp_path):
        f = tmp_path / CONFIG_FILE
        f.write_text("rocm:\n  default_version: '6.0'\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            build_config(config_path=f)

    def test_bad_scope(self, tmp_path):
        with pytest.raises(ConfigError):
            build_config({"scope": "everything", "project_dir": str(tmp_path)}, search=False)
