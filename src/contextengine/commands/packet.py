"""Packet management commands for Context Engine."""
import typer
from pathlib import Path
from typing import List, Optional

from ..config import require_root
from ..errors import ContextEngineError
from ..git import current_branch
from ..models import PacketStatus, PacketType
from ..packets import PacketManager

app = typer.Typer()

STATUS_ICONS = {
    PacketStatus.DRAFT: "○",
    PacketStatus.ACTIVE: "●",
    PacketStatus.BLOCKED: "⊘",
    PacketStatus.COMPLETED: "✓",
    PacketStatus.CANCELLED: "✗",
}


@app.command("create")
def packet_create(
    packet_type: PacketType = typer.Argument(..., help="Packet type: feat, bug, chore, refactor, docs, test"),
    title: str = typer.Argument(..., help="Packet title"),
    goal: str = typer.Option(..., "--goal", "-g", help="What this packet sets out to achieve"),
    dod: List[str] = typer.Option(..., "--dod", help="Definition-of-done item (repeatable)"),
    constraints: Optional[List[str]] = typer.Option(None, "--constraint", "-c", help="Constraint (repeatable)"),
    tests: Optional[List[str]] = typer.Option(None, "--test", "-t", help="Test to run (repeatable)"),
    author: Optional[str] = typer.Option(None, "--author", help="Author name"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Create a new draft packet.

    Example:
        ce packet create feat "OAuth login" --goal "Implement OAuth" --dod "Login works"
    """
    try:
        root = require_root(base)
        manager = PacketManager(root)
        packet = manager.create_packet(
            packet_type,
            title=title,
            goal=goal,
            dod=[d for d in dod if d.strip()],
            constraints=constraints or [],
            tests=tests or [],
            author=author,
            branch_name=current_branch(root),
        )
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Created packet: {packet.id}")
    typer.echo("")
    typer.echo("Next steps:")
    typer.echo(f"  ce packet status {packet.id} active")
    typer.echo(f"  ce anchor add {packet.id} <file> <symbol>")
    typer.echo(f"  ce switch {packet.id}")


@app.command("list")
def packet_list(
    status: Optional[PacketStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """List packets.

    Example:
        ce packet list
        ce packet list --status active
    """
    try:
        root = require_root(base)
        packets = PacketManager(root).list_packets(status=status)
    except ContextEngineError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not packets:
        typer.echo("No packets found.")
        return

    typer.echo(f"Packets ({len(packets)}):")
    typer.echo("-" * 60)
    for packet in packets:
        icon = STATUS_ICONS.get(packet.status, "?")
        anchors = f"[{len(packet.repo_truth)} anchors]" if packet.repo_truth else ""
        typer.echo(f"{icon} {packet.id}: {packet.title} ({packet.status.value}) {anchors}".rstrip())


@app.command("show")
def packet_show(
    packet_id: str = typer.Argument(..., help="Packet ID"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Show a packet's details."""
    try:
        root = require_root(base)
        packet = PacketManager(root).load_packet(packet_id)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Packet: {packet.id}")
    typer.echo(f"  Title: {packet.title}")
    typer.echo(f"  Type: {packet.type.value}")
    typer.echo(f"  Status: {packet.status.value}")
    typer.echo(f"  Goal: {packet.goal}")
    typer.echo(f"  Created: {packet.metadata.created_at.isoformat()}")
    typer.echo(f"  Updated: {packet.metadata.updated_at.isoformat()}")

    typer.echo("")
    typer.echo("Definition of Done:")
    for item in packet.dod:
        typer.echo(f"  - {item}")

    if packet.constraints:
        typer.echo("")
        typer.echo("Constraints:")
        for constraint in packet.constraints:
            typer.echo(f"  - {constraint}")

    typer.echo("")
    typer.echo(f"Anchors ({len(packet.repo_truth)}):")
    for anchor in packet.repo_truth:
        lines = f" lines {anchor.line_start}-{anchor.line_end}" if anchor.line_start else ""
        typer.echo(f"  - {anchor.symbol_type.value} {anchor.symbol} ({anchor.path}{lines})")

    if packet.metadata.related_adrs:
        typer.echo("")
        typer.echo(f"Related ADRs: {', '.join(packet.metadata.related_adrs)}")


@app.command("status")
def packet_status(
    packet_id: str = typer.Argument(..., help="Packet ID"),
    new_status: PacketStatus = typer.Argument(..., help="New status"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Move a packet to a new status.

    Completed and cancelled packets are moved to context/packets/completed/.

    Example:
        ce packet status FEAT-001 active
        ce packet status FEAT-001 completed
    """
    try:
        root = require_root(base)
        packet = PacketManager(root).update_status(packet_id, new_status)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Packet {packet.id} status changed to {packet.status.value}")


@app.command("link-adr")
def packet_link_adr(
    packet_id: str = typer.Argument(..., help="Packet ID"),
    adr_id: str = typer.Argument(..., help="ADR ID, e.g. ADR-0001"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Link an ADR to a packet so it is boosted during assembly."""
    try:
        root = require_root(base)
        packet = PacketManager(root).link_adr(packet_id, adr_id)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Linked {adr_id} to {packet.id}")
