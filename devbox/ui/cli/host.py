"""
CLI commands for inspecting the host.

Thin wrappers over ``devbox.core.use_cases.bootstrap``. Nothing here
changes the machine.
"""

from __future__ import annotations

import json
import sys

import click

from devbox.ui.cli.common import load_config

_STATE_MARKERS = {
    "absent": ("✗", "red"),
    "present-matching": ("✓", "green"),
    "present-mismatched": ("⚠", "yellow"),
}


@click.group()
def host() -> None:
    """Host — probe the machine, preview reconciliation."""


@host.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def probe(ctx: click.Context, as_json: bool) -> None:
    """Show distribution, identity and the state of each managed resource."""
    from devbox.core.use_cases.bootstrap import run_probe

    config = load_config(ctx)
    result = run_probe(config)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    profile, identity, obs = result.profile, result.identity, result.observation
    assert profile is not None and identity is not None and obs is not None

    click.secho("🖥️  Host", fg="cyan", bold=True)
    click.echo(f"   Distro:   {profile.distro_id or '?'} {profile.distro_version}")
    click.echo(f"   Codename: {profile.os_codename or '?'}")
    click.echo(f"   Packages: {profile.package_family.value}")
    click.echo(f"   User:     {identity.user or '?'} (uid={identity.uid} gid={identity.gid})")
    click.echo(
        f"   GPU GIDs: render={identity.render_gid if identity.render_gid is not None else '-'}"
        f" video={identity.video_gid if identity.video_gid is not None else '-'}"
    )
    click.echo()

    click.secho("   Resources:", fg="white", bold=True)
    for name, state in obs.resources.items():
        marker, color = _STATE_MARKERS[state.value]
        click.secho(f"     {marker} {name:<22} {state.value}", fg=color)

    if obs.missing_packages:
        click.echo(f"   Missing packages: {', '.join(obs.missing_packages)}")
    click.echo(f"   Driver modules:   {', '.join(obs.driver_modules) or 'none'}")
    click.echo(f"   Device nodes:     {', '.join(obs.device_nodes) or 'none'}")
    click.echo()


@host.command()
@click.option("--rocm", "rocm_pin", default=None, metavar="X.Y[.Z]", help="Pin a ROCm version.")
@click.option("--latest", "want_latest", is_flag=True, help="Prefer the newest ROCm series.")
@click.option("--reinstall", is_flag=True, help="Plan reinstalls of present packages.")
@click.option("--no-install-drivers", "skip_drivers", is_flag=True, help="Leave the driver alone.")
@click.option("--install-host-rocm", is_flag=True, help="Include the host ROCm userland.")
@click.option("--no-code", "skip_editor", is_flag=True, help="Leave VS Code alone.")
@click.option("--commands", "show_commands", is_flag=True, help="List the commands of each path.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(
    ctx: click.Context,
    rocm_pin: str | None,
    want_latest: bool,
    reinstall: bool,
    skip_drivers: bool,
    install_host_rocm: bool,
    skip_editor: bool,
    show_commands: bool,
    as_json: bool,
) -> None:
    """Show what bootstrap would do to this host, without doing it."""
    from devbox.core.use_cases.bootstrap import run_plan

    config = load_config(
        ctx,
        rocm_pin=rocm_pin,
        want_latest=want_latest or None,
        reinstall=reinstall or None,
        install_drivers=False if skip_drivers else None,
        install_host_rocm=install_host_rocm or None,
        install_editor=False if skip_editor else None,
    )
    result = run_plan(config)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.plan is not None and result.resolved is not None
    click.secho(f"📋 Host plan (ROCm {result.resolved.version})", fg="cyan", bold=True)
    for step in result.plan.steps:
        decision = step.decision
        color = "yellow" if decision.warning else ("green" if step.actionable else "white")
        required = " *" if decision.resource.required else ""
        click.secho(
            f"   {decision.action.value:<13} {decision.name}{required}  ({decision.reason})",
            fg=color,
        )
        for i, path in enumerate(step.paths, start=1):
            click.echo(f"      {i}. {path.name}")
            if show_commands:
                for cmd in path.commands:
                    click.echo(f"           $ {cmd.display()}")
        for note in step.notes:
            click.secho(f"      ⚠ {note}", fg="yellow")
    click.echo("\n   * required: failure aborts the run")
