"""Semantic anchor commands for Context Engine."""
import typer
from pathlib import Path
from typing import Optional

from ..analysis import SymbolExtractor, language_from_extension
from ..anchors import check_anchors, create_anchor, format_anchor_status, refresh_anchor
from ..config import get_max_workers, require_root, resolve_packet_id, resolve_root
from ..errors import ContextEngineError, NotFound
from ..models import DriftStatus, Language
from ..packets import PacketManager

app = typer.Typer()


def _read_file(file_path: Path) -> tuple[str, Language]:
    if not file_path.is_file():
        raise NotFound(f"File not found: {file_path}")
    language = language_from_extension(file_path)
    if language is None:
        raise NotFound(f"Unsupported file type: {file_path}")
    return file_path.read_text(encoding="utf-8"), language


@app.command("symbols")
def anchor_symbols(
    file: Path = typer.Argument(..., help="Source file to list symbols from"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """List the anchorable symbols in a file.

    Example:
        ce anchor symbols src/auth.ts
    """
    root = resolve_root(base)
    try:
        content, language = _read_file(root / file if not file.is_absolute() else file)
        symbols = SymbolExtractor().find_all_symbols(content, language)
    except (ContextEngineError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not symbols:
        typer.echo("No symbols found.")
        return

    typer.echo(f"Symbols in {file} ({len(symbols)}):")
    for symbol in symbols:
        typer.echo(f"  {symbol.kind.value:<10} {symbol.name} (lines {symbol.start_line}-{symbol.end_line})")


@app.command("add")
def anchor_add(
    packet_id: str = typer.Argument(..., help="Packet ID"),
    file: Path = typer.Argument(..., help="Source file, relative to the project root"),
    symbol: str = typer.Argument(..., help="Symbol name to anchor"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Anchor a symbol to a packet.

    Example:
        ce anchor add FEAT-001 src/auth.ts handleOAuthCallback
    """
    try:
        root = require_root(base)
        file_path = file if file.is_absolute() else root / file
        content, language = _read_file(file_path)

        found = SymbolExtractor().find_symbol(content, symbol, language)
        if found is None:
            raise NotFound(f"Symbol '{symbol}' not found in {file}")

        anchor = create_anchor(file_path, found, root)
        PacketManager(root).add_anchor(packet_id, anchor)
    except (ContextEngineError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Added anchor: {anchor.symbol} ({anchor.path})")
    typer.echo(f"  Hash: {anchor.semantic_hash[:20]}...")


@app.command("check")
def anchor_check(
    packet_id: Optional[str] = typer.Argument(None, help="Packet ID (defaults to the current packet)"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Check a packet's anchors for semantic drift.

    Exits with code 1 if any anchor has drifted or been deleted.
    """
    try:
        root = require_root(base)
        packet = PacketManager(root).load_packet(resolve_packet_id(packet_id, root))
        results = check_anchors(packet.repo_truth, root, max_workers=get_max_workers())
    except (ContextEngineError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not results:
        typer.echo(f"{packet.id} has no anchors.")
        return

    typer.echo(f"Anchors for {packet.id}:")
    for result in results:
        typer.echo(f"  {format_anchor_status(result)}")

    issues = [r for r in results if r.status is not DriftStatus.VALID]
    typer.echo("")
    typer.echo(f"{len(results) - len(issues)}/{len(results)} anchors valid")
    if issues:
        typer.echo(f"Run 'ce anchor refresh {packet.id}' after reviewing the changes.")
        raise typer.Exit(1)


@app.command("refresh")
def anchor_refresh(
    packet_id: Optional[str] = typer.Argument(None, help="Packet ID (defaults to the current packet)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Refresh without confirmation"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Re-capture drifted anchors from the current source.

    Deleted anchors cannot be refreshed and are reported instead.
    """
    try:
        root = require_root(base)
        manager = PacketManager(root)
        packet = manager.load_packet(resolve_packet_id(packet_id, root))
        extractor = SymbolExtractor()
        results = check_anchors(packet.repo_truth, root, extractor, max_workers=get_max_workers())
    except (ContextEngineError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    drifted = [r for r in results if r.status is DriftStatus.SEMANTIC_DRIFT]
    deleted = [r for r in results if r.status is DriftStatus.DELETED]

    for result in deleted:
        typer.echo(f"  {format_anchor_status(result)}")

    if not drifted:
        typer.echo("No drifted anchors to refresh.")
        if deleted:
            raise typer.Exit(1)
        return

    typer.echo(f"Drifted anchors in {packet.id}:")
    for result in drifted:
        typer.echo(f"  {format_anchor_status(result)}")

    if not yes and not typer.confirm(f"Refresh {len(drifted)} anchor(s)?"):
        typer.echo("Aborted.")
        raise typer.Exit(1)

    try:
        anchors = [
            refresh_anchor(anchor, root, extractor) if result.status is DriftStatus.SEMANTIC_DRIFT else anchor
            for anchor, result in zip(packet.repo_truth, results)
        ]
        manager.replace_anchors(packet.id, anchors, packet=packet)
    except (ContextEngineError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Refreshed {len(drifted)} anchor(s)")
