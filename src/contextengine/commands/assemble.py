"""Assemble a context pack for an AI coding agent."""
import typer
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_MAX_TOKENS, MIN_MAX_TOKENS, require_root, resolve_packet_id
from ..errors import ContextEngineError
from ..retrieval.assembler import assemble_context_pack


def assemble(
    packet_id: Optional[str] = typer.Argument(None, help="Packet ID (defaults to the current packet)"),
    max_tokens: int = typer.Option(
        DEFAULT_MAX_TOKENS, "--max-tokens", "-m",
        min=MIN_MAX_TOKENS,
        help="Token budget for the whole pack",
    ),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the pack to a file"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Assemble the context pack for a packet.

    Example:
        ce assemble FEAT-001
        ce assemble --max-tokens 4000 --out context.md
    """
    try:
        root = require_root(base)
        pack = assemble_context_pack(resolve_packet_id(packet_id, root), root, max_tokens)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(pack.text, encoding="utf-8")
        typer.echo(f"Context pack written to {out}")
        typer.echo(f"  Tokens: {pack.token_count}/{pack.max_tokens}")
        typer.echo(f"  Related items: {len(pack.selected)}")
    else:
        typer.echo(pack.text)

    if not pack.within_budget:
        typer.echo(
            f"Warning: fixed sections alone use {pack.token_count} tokens, over the {max_tokens} budget",
            err=True,
        )
