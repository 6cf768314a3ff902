"""Command and event log commands for Context Engine."""

import typer
from pathlib import Path

from ..config import resolve_root
from ..logging import COMMAND_LOG_FILE, get_logs_path, parse_log_file

app = typer.Typer(help="Inspect the command and event log.")


@app.command("show")
def logs_show(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of recent lines to show"),
    events_only: bool = typer.Option(False, "--events", help="Show only library events"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
):
    """Show recent log entries."""
    from rich.console import Console

    console = Console()
    entries = parse_log_file(resolve_root(base))

    if events_only:
        entries = [e for e in entries if e["is_event"]]

    if not entries:
        console.print("[yellow]No log entries found.[/yellow]")
        return

    for entry in entries[-lines:]:
        ts = entry["timestamp"][:19]
        args = entry["args"][:80] + "..." if len(entry["args"]) > 80 else entry["args"]

        if entry["is_event"]:
            console.print(f"[bold blue]{ts}[/] [yellow]{entry['command']}[/] {args}")
        else:
            console.print(f"[dim]{ts}[/] {entry['command']} {args}")


@app.command("clear")
def logs_clear(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
):
    """Clear the log file."""
    log_file = get_logs_path(resolve_root(base)) / COMMAND_LOG_FILE

    if not log_file.exists():
        typer.echo("No log file to clear.")
        return

    if not force and not typer.confirm("Clear all log entries?"):
        raise typer.Abort()

    log_file.unlink()
    typer.echo("Log file cleared.")
