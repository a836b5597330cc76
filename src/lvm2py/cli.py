"""
lvm2py Command Line Interface (CLI)

Small diagnostic utilities: show how lvm2py sees its environment, preview the
exact process a call would start (including nsenter wrapping and the added
environment), and list volume groups, logical volumes and physical volumes.
"""

import json
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lvm2py.client import Client, LVMClient, NoNsenterClient
from lvm2py.core import containerized
from lvm2py.core.command import build_command
from lvm2py.core.context import (
    BACKGROUND,
    ExecutionContext,
    default_wait_delay,
    use_standard_locale,
)
from lvm2py.core.errors import ExecutionError, ValidationError
from lvm2py.core.options import LogicalVolumeName, VolumeGroupName
from lvm2py.core.settings import Lvm2PySettings

app = typer.Typer(rich_markup_mode="markdown")
console = Console()


def output_json(data: Any) -> None:
    """Helper to output data as JSON."""
    print(json.dumps(data, default=str, indent=2))


def _parse_env(entries: Optional[List[str]]) -> dict:
    env = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid --env entry {entry!r}, expected KEY=VALUE[/red]")
            raise typer.Exit(1)
        env[key] = value
    return env


def _build_context(
    no_nsenter: bool = False,
    vg: Optional[str] = None,
    env: Optional[List[str]] = None,
) -> ExecutionContext:
    ctx = BACKGROUND.with_force_no_nsenter(no_nsenter)
    if vg:
        ctx = ctx.with_default_volume_group(vg)
    parsed = _parse_env(env)
    if parsed:
        ctx = ctx.with_custom_environment(parsed)
    return ctx


def get_client(no_nsenter: bool = False) -> Client:
    """Return the client used by the report commands."""
    client: Client = LVMClient()
    if no_nsenter:
        client = NoNsenterClient(client)
    return client


def _run_report(fn, *opts: Any) -> List[Any]:
    try:
        return fn(*opts)
    except (ExecutionError, ValidationError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def env(
    json_output: bool = typer.Option(
        False, "--json", help="Output the environment as JSON."
    ),
) -> None:
    """
    Shows container detection and the process-wide lvm2py configuration.
    """
    settings = Lvm2PySettings.from_env()
    data = {
        "containerized": containerized.is_containerized(),
        "will_use_nsenter": containerized.will_use_nsenter(),
        "lvm_binary": settings.lvm_binary,
        "nsenter_path": settings.nsenter_path,
        "use_standard_locale": use_standard_locale(),
        "default_wait_delay": default_wait_delay(),
    }
    if json_output:
        output_json(data)
        return

    table = Table(title="lvm2py environment")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True}
)
def preview(
    subcommand: str = typer.Argument(..., help="LVM subcommand, e.g. 'vgcreate'."),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments for the subcommand."),
    no_nsenter: bool = typer.Option(
        False, "--no-nsenter", help="Never wrap the command in nsenter."
    ),
    vg: Optional[str] = typer.Option(
        None, "--vg", help="Default volume group exported as LVM_VG_NAME."
    ),
    env_entries: Optional[List[str]] = typer.Option(
        None, "--env", help="Extra KEY=VALUE environment entry. Can be used multiple times."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output the command as JSON."
    ),
) -> None:
    """
    Prints the process an LVM call would start, without running it.
    """
    ctx = _build_context(no_nsenter, vg, env_entries)
    settings = Lvm2PySettings.from_env()
    command = build_command(ctx, settings.lvm_binary, subcommand, *(args or []))

    if json_output:
        output_json({"argv": command.argv, "env": command.env})
        return

    body = f"[bold]{command}[/bold]"
    if command.env:
        body += "\n\n[dim]env:[/dim] " + " ".join(command.env)
    console.print(Panel(body, title="Command preview", expand=False))


@app.command()
def vgs(
    no_nsenter: bool = typer.Option(False, "--no-nsenter", help="Never use nsenter."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """
    Lists volume groups.
    """
    groups = _run_report(get_client(no_nsenter).vgs)
    if json_output:
        output_json([g.model_dump() for g in groups])
        return

    table = Table(title="Volume Groups")
    table.add_column("Name", style="cyan")
    table.add_column("Size (B)", style="magenta")
    table.add_column("Free (B)", style="magenta")
    table.add_column("PVs")
    table.add_column("LVs")
    table.add_column("Tags", style="yellow")
    for g in groups:
        table.add_row(
            g.name,
            str(g.size),
            str(g.free),
            str(g.pv_count),
            str(g.lv_count),
            ", ".join(g.tags),
        )
    console.print(table)


@app.command()
def lvs(
    vg: Optional[str] = typer.Option(None, "--vg", help="Only list this volume group."),
    lv: Optional[str] = typer.Option(None, "--lv", help="Only list this logical volume."),
    no_nsenter: bool = typer.Option(False, "--no-nsenter", help="Never use nsenter."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """
    Lists logical volumes, optionally filtered by volume group.
    """
    opts: List[Any] = []
    if vg:
        opts.append(VolumeGroupName(vg))
    if lv:
        opts.append(LogicalVolumeName(lv))
    volumes = _run_report(get_client(no_nsenter).lvs, *opts)
    if json_output:
        output_json([v.model_dump() for v in volumes])
        return

    table = Table(title="Logical Volumes")
    table.add_column("Name", style="cyan")
    table.add_column("VG", style="green")
    table.add_column("Size (B)", style="magenta")
    table.add_column("Active")
    table.add_column("Tags", style="yellow")
    for v in volumes:
        active = "[green]yes[/]" if v.active else "[dim]no[/]"
        table.add_row(v.name, v.vg_name, str(v.size), active, ", ".join(v.tags))
    console.print(table)


@app.command()
def pvs(
    no_nsenter: bool = typer.Option(False, "--no-nsenter", help="Never use nsenter."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """
    Lists physical volumes.
    """
    volumes = _run_report(get_client(no_nsenter).pvs)
    if json_output:
        output_json([p.model_dump() for p in volumes])
        return

    table = Table(title="Physical Volumes")
    table.add_column("Device", style="cyan")
    table.add_column("VG", style="green")
    table.add_column("Size (B)", style="magenta")
    table.add_column("Free (B)", style="magenta")
    for p in volumes:
        table.add_row(p.name, p.vg_name or "[dim]-[/]", str(p.size), str(p.free))
    console.print(table)


if __name__ == "__main__":
    app()
