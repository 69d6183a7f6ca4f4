"""
CLI commands for ROCm version selection.
"""

from __future__ import annotations

import json
import sys

import click

from devbox.ui.cli.common import load_config


@click.group()
def rocm() -> None:
    """ROCm — resolve the version, list published releases."""


@rocm.command()
@click.option("--rocm", "rocm_pin", default=None, metavar="X.Y[.Z]", help="Pin a ROCm version.")
@click.option("--latest", "want_latest", is_flag=True, help="Prefer the newest ROCm series.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, rocm_pin: str | None, want_latest: bool, as_json: bool) -> None:
    """Resolve the ROCm version a bootstrap would use."""
    from devbox.core.use_cases.bootstrap import run_resolve

    config = load_config(ctx, rocm_pin=rocm_pin, want_latest=want_latest or None)
    result = run_resolve(config)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    resolved = result.resolved
    assert resolved is not None
    click.secho(f"🧩 ROCm {resolved.version}", fg="cyan", bold=True)
    click.echo(f"   Source:    {resolved.source.value}")
    click.echo(f"   Image tag: {result.tag}")
    if resolved.fallback_used:
        click.secho("   ⚠ fell back to the default version", fg="yellow")


@rocm.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def versions(ctx: click.Context, as_json: bool) -> None:
    """List the ROCm versions published in the apt index."""
    from devbox.core.services.host_setup.domain.version_constraint import series_at_least
    from devbox.core.use_cases.bootstrap import run_versions

    config = load_config(ctx)
    found = run_versions(config)

    if as_json:
        click.echo(json.dumps({"versions": found}, indent=2))
        sys.exit(0 if found else 1)

    if not found:
        click.secho("❌ ROCm index unreachable or empty", fg="red")
        sys.exit(1)

    minimum = config.rocm.minimum
    for version in found:
        below = "" if series_at_least(version, minimum) else f"  (below minimum {minimum})"
        click.echo(f"   {version}{below}")
