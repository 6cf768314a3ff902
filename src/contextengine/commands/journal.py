"""Journal commands for Context Engine."""
import typer
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..config import require_root, resolve_packet_id
from ..errors import ContextEngineError
from ..git import changed_files, current_revision
from ..logging import log_event
from ..models import JournalEntry
from ..packets import PacketManager
from ..records import append_journal_entry, load_journal_entries

app = typer.Typer()


@app.command("add")
def journal_add(
    summary: str = typer.Argument(..., help="What changed and why"),
    packet_id: Optional[str] = typer.Option(None, "--packet", "-p", help="Packet ID (defaults to the current packet)"),
    files: Optional[List[str]] = typer.Option(None, "--file", "-f", help="Changed file (repeatable; defaults to the HEAD commit's files)"),
    risks: Optional[List[str]] = typer.Option(None, "--risk", "-r", help="Risk (repeatable)"),
    next_steps: Optional[List[str]] = typer.Option(None, "--next", "-n", help="Next step (repeatable)"),
    commit: Optional[str] = typer.Option(None, "--commit", help="Commit SHA (defaults to HEAD)"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Record a journal entry against a packet.

    Example:
        ce journal add "Added OAuth callback handler" --file src/auth.ts
    """
    try:
        root = require_root(base)
        packet = PacketManager(root).load_packet(resolve_packet_id(packet_id, root))
        entry = JournalEntry(
            packet_id=packet.id,
            commit_sha=commit or current_revision(root),
            changed_files=files if files else changed_files(root),
            summary=summary,
            risks=risks or [],
            next_steps=next_steps or [],
            timestamp=datetime.now(timezone.utc),
        )
        path = append_journal_entry(entry, root)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    log_event("journal_added", {"packet": packet.id, "commit": entry.commit_sha}, root)
    typer.echo("✓ Journal entry added")
    typer.echo(f"  Path: {path.relative_to(root).as_posix()}")


@app.command("list")
def journal_list(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Only entries from the last N days"),
    packet_id: Optional[str] = typer.Option(None, "--packet", "-p", help="Only entries for this packet"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """List journal entries, newest first."""
    try:
        root = require_root(base)
        entries = load_journal_entries(root, window_days=days)
    except ContextEngineError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if packet_id:
        entries = [e for e in entries if e.packet_id == packet_id]

    if not entries:
        typer.echo("No journal entries found.")
        return

    for entry in sorted(entries, key=lambda e: e.timestamp, reverse=True):
        typer.echo(f"{entry.timestamp:%Y-%m-%d %H:%M} {entry.packet_id} {entry.commit_sha[:8]}  {entry.summary}")
