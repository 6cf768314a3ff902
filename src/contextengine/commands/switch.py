"""Select the packet that other commands default to."""
import typer
from pathlib import Path

from ..config import require_root, save_current_context
from ..errors import ContextEngineError
from ..packets import PacketManager


def switch(
    packet_id: str = typer.Argument(..., help="Packet ID to switch to"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Switch to a work packet.

    Example:
        ce switch FEAT-001
    """
    try:
        root = require_root(base)
        packet = PacketManager(root).load_packet(packet_id)
        save_current_context(packet.id, root)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Switched to: {packet.id}")
    typer.echo("")
    typer.echo(f"  Title: {packet.title}")
    typer.echo(f"  Status: {packet.status.value}")
    typer.echo(f"  Goal: {packet.goal}")
    typer.echo(f"  Anchors: {len(packet.repo_truth)} defined")
    typer.echo("")
    typer.echo("Quick actions:")
    typer.echo("  ce assemble        - Assemble context pack")
    typer.echo("  ce anchor check    - Check anchors for drift")
