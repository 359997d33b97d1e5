from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from snapdeck import __version__
from snapdeck.config import (
    DEFAULT_CONFIG, GLOBAL_CONFIG_FILE, create_assets, create_snapper, load_config,
    save_global_config,
)
from snapdeck.display import display_changes, display_settings, display_snapshots
from snapdeck.errors import InvalidRequest, SnapdeckError
from snapdeck.log import read_logs, set_log_file, write_log
from snapdeck.table import format_settings


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_file", type=click.Path(dir_okay=False),
              default=None, help="JSON settings file (overrides ~/.snapdeck/config.json).")
@click.pass_context
def main(ctx, config_file):
    """snapdeck: web console for snapper snapshots."""
    try:
        config = load_config(config_file)
    except (ValueError, OSError) as e:
        raise click.ClickException(str(e))
    if config.get("audit_log"):
        set_log_file(config["audit_log"])
    ctx.obj = config


def _snapper(ctx):
    return create_snapper(ctx.obj)


def _fail(console, error):
    console.print(f"[red]{escape(str(error))}[/red]")
    raise SystemExit(1)


def _record(console, entry):
    try:
        write_log(entry)
    except OSError as e:
        console.print(f"[yellow]Warning: could not write audit log: {escape(str(e))}[/yellow]")


def _audited(console, event, fields, action):
    """Run a mutation, record it in the audit log, exit 1 on failure."""
    entry = {"event": event, "source": "cli", **fields}
    try:
        result = action()
    except InvalidRequest as e:
        _record(console, {**entry, "result": "rejected", "error": str(e)})
        _fail(console, e)
    except SnapdeckError as e:
        _record(console, {**entry, "result": "failed", "error": str(e)})
        _fail(console, e)
    _record(console, {**entry, "result": "ok"})
    return result


@main.command()
@click.option("--host", default=None, help="Address to bind (default from config: 127.0.0.1).")
@click.option("--port", type=int, default=None, help="Port to listen on (default from config: 8888).")
@click.option("--quiet", is_flag=True, help="Suppress the per-request access log.")
@click.pass_context
def serve(ctx, host, port, quiet):
    """Run the web console."""
    from snapdeck.server import WebConsole

    config = ctx.obj
    console = Console()
    web = WebConsole(
        _snapper(ctx),
        create_assets(config),
        host=host or config["host"],
        port=port if port is not None else config["port"],
        quiet=quiet,
    )
    console.print(f"[bold]snapdeck {__version__}[/bold] serving on [cyan]{web.url}[/cyan]")
    console.print(f"[dim]snapper: {config['snapper']} | configs: {config['configs_dir']}[/dim]")
    try:
        web.serve_forever()
    except OSError as e:
        _fail(console, f"Could not start server: {e}")
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


@main.command()
@click.pass_context
def configs(ctx):
    """List snapper configurations."""
    console = Console()
    try:
        names = _snapper(ctx).list_configs()
    except SnapdeckError as e:
        _fail(console, e)
    if not names:
        console.print("[dim]No snapper configurations found.[/dim]")
        return
    for name in names:
        console.print(f"  {name}")


@main.command()
@click.argument("config")
@click.option("--plain", is_flag=True, help="Print a plain 'Key | Value' report.")
@click.pass_context
def settings(ctx, config, plain):
    """Show the settings of a configuration."""
    console = Console()
    try:
        values = _snapper(ctx).get_settings(config)
    except SnapdeckError as e:
        _fail(console, e)
    if plain:
        click.echo(format_settings(values), nl=False)
        return
    display_settings(console, values, config)


@main.command("list")
@click.argument("config")
@click.pass_context
def list_cmd(ctx, config):
    """List snapshots of a configuration."""
    console = Console()
    try:
        snapshots = _snapper(ctx).list_snapshots(config)
    except SnapdeckError as e:
        _fail(console, e)
    display_snapshots(console, snapshots, config)


@main.command()
@click.argument("config")
@click.argument("range_", metavar="RANGE")
@click.pass_context
def status(ctx, config, range_):
    """Show files changed in RANGE (e.g. 3..7, or 3..live for the running system)."""
    console = Console()
    try:
        changes = _snapper(ctx).status(config, range_)
    except SnapdeckError as e:
        _fail(console, e)
    display_changes(console, changes)


@main.command()
@click.argument("config")
@click.option("-d", "--description", required=True, help="Snapshot description.")
@click.option("--userdata", default=None, help="key=value[,key=value] metadata.")
@click.option("--cleanup", default=None, help="Cleanup algorithm (number, timeline, empty-pre-post).")
@click.pass_context
def create(ctx, config, description, userdata, cleanup):
    """Create a snapshot."""
    console = Console()
    fields = {"config": config, "description": description}
    if userdata:
        fields["userdata"] = userdata
    number = _audited(console, "create", fields, lambda: _snapper(ctx).create(
        config, description, userdata=userdata, cleanup=cleanup,
    ))
    if number is None:
        console.print("[green]Snapshot created.[/green]")
    else:
        console.print(f"[green]Created snapshot [bold]{number}[/bold].[/green]")


@main.command()
@click.argument("config")
@click.argument("snapshot_id", metavar="ID")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def delete(ctx, config, snapshot_id, yes):
    """Delete a snapshot."""
    console = Console()
    if not yes and not click.confirm(f"Delete snapshot {snapshot_id} of {config}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return
    _audited(console, "delete", {"config": config, "id": snapshot_id},
             lambda: _snapper(ctx).delete(config, snapshot_id))
    console.print(f"  [red]Deleted[/red] {snapshot_id}")


@main.command()
@click.argument("config")
@click.argument("snapshot_id", metavar="ID")
@click.option("-d", "--description", default=None, help="Description for the rollback snapshots.")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def rollback(ctx, config, snapshot_id, description, yes):
    """Roll the default subvolume back to a snapshot. Takes effect after reboot."""
    console = Console()
    if not yes and not click.confirm(f"Roll {config} back to snapshot {snapshot_id}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return
    output = _audited(console, "rollback", {"config": config, "id": snapshot_id},
                      lambda: _snapper(ctx).rollback(config, snapshot_id, description))
    if output:
        console.print(output, highlight=False)
    console.print("[bold green]Rollback done. Reboot to use the restored snapshot.[/bold green]")


@main.command()
@click.argument("config")
@click.argument("range_", metavar="RANGE")
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def undo(ctx, config, range_, paths):
    """Revert PATHS to their state at the start of RANGE."""
    console = Console()
    output = _audited(console, "undochange", {"config": config, "range": range_, "paths": list(paths)},
                      lambda: _snapper(ctx).undo_change(config, range_, list(paths)))
    if output:
        console.print(output, highlight=False)
    console.print(f"[green]Reverted {len(paths)} path(s).[/green]")


@main.command()
@click.option("-n", "--limit", default=20, help="Number of log entries to show.")
def logs(limit):
    """Show the audit log of snapshot changes."""
    console = Console()
    entries = read_logs(limit)
    if not entries:
        console.print("[dim]No audit entries yet.[/dim]")
        return

    table = Table(title="Audit Log")
    table.add_column("Time", style="dim")
    table.add_column("Event", style="bold")
    table.add_column("Config", style="cyan")
    table.add_column("Target")
    table.add_column("Source", style="dim")
    table.add_column("Result", style="bold")

    for entry in entries:
        ts = entry.get("timestamp", "")
        if ts:
            try:
                ts = datetime.fromisoformat(ts).strftime("%m-%d %H:%M")
            except ValueError:
                pass
        target = entry.get("id") or entry.get("range") or entry.get("description") or ""
        result = entry.get("result", "")
        result_style = {"ok": "[green]ok[/green]", "failed": "[red]failed[/red]",
                        "rejected": "[yellow]rejected[/yellow]"}.get(result, result)
        table.add_row(ts, entry.get("event", ""), entry.get("config", ""),
                      str(target)[:40], entry.get("source", ""), result_style)

    console.print(table)


@main.command("config")
@click.argument("key")
@click.argument("value")
def config_cmd(key, value):
    """Save a default setting to ~/.snapdeck/config.json.

    Example: snapdeck config port 9000
    """
    if key not in DEFAULT_CONFIG:
        raise click.BadParameter(f"Unknown key {key!r}. Known: {', '.join(DEFAULT_CONFIG)}")
    save_global_config({key: value})
    click.echo(f"Saved {key} to {GLOBAL_CONFIG_FILE}")
