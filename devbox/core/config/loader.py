"""
Configuration loader — builds a BootstrapConfig from file + flags.

Precedence: CLI flags > ``devbox.yml`` > built-in defaults. The YAML
file is optional; when present it is validated against the same
pydantic schema the rest of the code consumes.

Example ``devbox.yml``::

    rocm:
      default_version: "6.4.3"
      minimum: "6.4"
    container:
      shm_size: 32g
    audit: true
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from devbox.core.errors import ConfigError
from devbox.core.models.config import BootstrapConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "devbox.yml"

# Keys accepted at the top level of devbox.yml
_FILE_KEYS = {
    "devcontainer_dirname", "required_groups", "audit",
    "install_drivers", "install_host_rocm", "install_editor",
    "rocm", "container",
}

__all__ = ["CONFIG_FILE", "ConfigError", "build_config", "find_config_file", "load_file_settings"]


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for devbox.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to devbox.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_file_settings(path: Path) -> dict[str, Any]:
    """Read and shape-check a devbox.yml file.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    unknown = sorted(set(data) - _FILE_KEYS)
    if unknown:
        raise ConfigError(f"Unknown keys in {path}: {', '.join(unknown)}")

    return data


def build_config(
    overrides: dict[str, Any] | None = None,
    config_path: Path | None = None,
    search: bool = True,
) -> BootstrapConfig:
    """Assemble the run configuration.

    Args:
        overrides: Values from the CLI. ``None`` entries are ignored so
            an unset flag never masks a file value.
        config_path: Explicit devbox.yml path.
        search: Whether to look for devbox.yml upward from the project
            directory when no explicit path is given.

    Returns:
        Validated BootstrapConfig.

    Raises:
        ConfigError: On unreadable files or failed validation.
    """
    flags = {k: v for k, v in (overrides or {}).items() if v is not None}

    if config_path is None and search:
        start = Path(flags["project_dir"]) if "project_dir" in flags else None
        config_path = find_config_file(start)

    data: dict[str, Any] = load_file_settings(config_path) if config_path else {}
    data.update(flags)

    try:
        config = BootstrapConfig.model_validate(data)
    except ValidationError as e:
        source = f" in {config_path}" if config_path else ""
        raise ConfigError(f"Invalid configuration{source}: {e}") from e

    logger.debug(
        "Config: scope=%s project=%s file=%s",
        config.scope, config.project_dir, config_path or "(none)",
    )
    return config
