"""Terminal rendering for snapshot listings, change reports and settings."""

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from snapdeck.status import MODIFIED, summarize_changes

ACTION_STYLES = {"+": "green", "-": "red", MODIFIED: "yellow"}
ACTION_LABELS = {"+": "created", "-": "deleted", MODIFIED: "modified", "t": "type changed"}


def display_snapshots(console, snapshots, config):
    if not snapshots:
        console.print(f"[dim]No snapshots for {config}.[/dim]")
        return

    table = Table(title=f"Snapshots ({config})")
    table.add_column("#", style="bold cyan", justify="right")
    table.add_column("Type")
    table.add_column("Pre #", style="dim", justify="right")
    table.add_column("Date", style="dim")
    table.add_column("User", style="dim")
    table.add_column("Cleanup", style="dim")
    table.add_column("Description", max_width=50)
    table.add_column("Userdata", style="dim")

    for s in snapshots:
        number = str(s.id)
        if s.default and s.active:
            number += "+"
        elif s.default:
            number += "*"
        elif s.active:
            number += "-"
        table.add_row(number, *(escape(v) for v in (
            s.type, s.pre_id, s.date, s.user, s.cleanup, s.description, s.userdata,
        )))

    console.print(table)
    console.print("[dim]* default  - mounted  + both[/dim]")


def display_changes(console, changes):
    """Render a change report with one colored line per file and a summary."""
    if not changes:
        console.print("[dim]No changes detected.[/dim]")
        return

    for change in changes:
        style = ACTION_STYLES.get(change.action, "dim")
        label = ACTION_LABELS.get(change.action, change.action)
        console.print(Text(f"  {label:<12} {change.path}", style=style))

    counts = summarize_changes(changes)
    console.print()
    console.print(
        f"[bold]{len(changes)} file(s) changed[/bold] | "
        f"[green]{counts.get('+', 0)} created[/green] | "
        f"[yellow]{counts.get(MODIFIED, 0)} modified[/yellow] | "
        f"[red]{counts.get('-', 0)} deleted[/red]"
    )


def display_settings(console, settings, config):
    if not settings:
        console.print(f"[dim]No settings found for {config}.[/dim]")
        return

    table = Table(title=f"Settings ({config})")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(escape(key), escape(value))
    console.print(table)
