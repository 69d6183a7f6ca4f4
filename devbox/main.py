"""
devbox — CLI entrypoint.

Usage:
    devbox --help
    devbox bootstrap
    devbox bootstrap --devcontainer-only --rocm 6.4.3
    devbox host plan
    devbox rocm resolve --latest
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from devbox import __version__
from devbox.core.observability.logging_config import setup_logging
from devbox.ui.cli.common import load_config


@click.group()
@click.version_option(version=__version__, prog_name="devbox")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to devbox.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devbox — prepare a host and a devcontainer for ROCm ML work."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("DEVBOX_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("DEVBOX_LOG_FILE"),
        log_file_level=os.environ.get("DEVBOX_LOG_FILE_LEVEL"),
    )


_STATUS_MARKERS = {
    "ok": ("✓", "green"),
    "dry-run": ("…", "cyan"),
    "skipped": ("⊘", "white"),
    "failed": ("✗", "red"),
    "written": ("✓", "green"),
}


@cli.command()
@click.option(
    "--scope",
    type=click.Choice(["host", "container", "all"]),
    default=None,
    help="What to reconcile (default: all).",
)
@click.option(
    "--devcontainer-only",
    is_flag=True,
    help="Only generate the devcontainer (same as --scope container).",
)
@click.option("--rocm", "rocm_pin", default=None, metavar="X.Y[.Z]", help="Pin a ROCm version.")
@click.option("--latest", "want_latest", is_flag=True, help="Prefer the newest ROCm series.")
@click.option("--force", is_flag=True, help="Overwrite existing devcontainer files.")
@click.option("--reinstall", is_flag=True, help="Reinstall host packages already present.")
@click.option(
    "--no-install-drivers",
    "skip_drivers",
    is_flag=True,
    help="Do not install the amdgpu kernel driver.",
)
@click.option(
    "--install-host-rocm",
    is_flag=True,
    help="Also install the ROCm userland on the host.",
)
@click.option("--no-code", "skip_editor", is_flag=True, help="Do not install VS Code.")
@click.option(
    "--project",
    "project_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Project directory (default: current directory).",
)
@click.option("--dry-run", is_flag=True, help="Show what would change; change nothing.")
@click.option("--audit", is_flag=True, help="Append the run to .state/audit.ndjson.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def bootstrap(
    ctx: click.Context,
    scope: str | None,
    devcontainer_only: bool,
    rocm_pin: str | None,
    want_latest: bool,
    force: bool,
    reinstall: bool,
    skip_drivers: bool,
    install_host_rocm: bool,
    skip_editor: bool,
    project_dir: str | None,
    dry_run: bool,
    audit: bool,
    as_json: bool,
) -> None:
    """Provision the host and generate the ROCm devcontainer."""
    from devbox.core.use_cases.bootstrap import run_bootstrap

    if devcontainer_only:
        scope = "container"

    config = load_config(
        ctx,
        scope=scope,
        rocm_pin=rocm_pin,
        want_latest=want_latest or None,
        force=force or None,
        reinstall=reinstall or None,
        install_drivers=False if skip_drivers else None,
        install_host_rocm=install_host_rocm or None,
        install_editor=False if skip_editor else None,
        project_dir=project_dir,
        dry_run=dry_run or None,
        audit=audit or None,
    )

    result = run_bootstrap(config)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.resolved:
        fallback = " (fallback)" if result.resolved.fallback_used else ""
        click.secho(f"\n🧩 ROCm {result.resolved.version}{fallback}", fg="cyan", bold=True)

    if result.report and not ctx.obj.get("quiet"):
        click.secho("   Host:", fg="white", bold=True)
        for outcome in result.report.outcomes:
            marker, color = _STATUS_MARKERS.get(outcome.status, ("?", "white"))
            detail = outcome.path or outcome.reason
            click.secho(f"     {marker} {outcome.resource:<22} {detail}", fg=color)

    if result.artifacts:
        click.secho(f"   Devcontainer ({config.devcontainer_dir}):", fg="white", bold=True)
        for artifact in result.artifacts:
            marker, color = _STATUS_MARKERS.get(artifact.status, ("?", "white"))
            click.secho(f"     {marker} {Path(artifact.path).name:<22} {artifact.status}", fg=color)

    if result.error:
        click.echo()
        click.secho(f"❌ {result.error}", fg="red", bold=True)
        sys.exit(result.exit_code)

    if result.notices:
        click.echo()
        for notice in result.notices:
            click.secho(f"👉 {notice}", fg="yellow")
    click.echo()


# ── Register command groups ─────────────────────────────────────

from devbox.ui.cli.host import host  # noqa: E402
from devbox.ui.cli.rocm import rocm  # noqa: E402

cli.add_command(host)
cli.add_command(rocm)


if __name__ == "__main__":
    cli()
