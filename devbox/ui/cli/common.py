"""
Helpers shared by the CLI command modules.
"""

from __future__ import annotations

import sys
from typing import Any

import click

from devbox.core.models.config import BootstrapConfig


def load_config(ctx: click.Context, **overrides: Any) -> BootstrapConfig:
    """Build the run configuration or exit 1 with the config error."""
    from devbox.core.config.loader import build_config
    from devbox.core.errors import ConfigError

    try:
        return build_config(overrides, config_path=ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
