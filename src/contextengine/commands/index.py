"""Build the keyword index."""
import typer
from pathlib import Path

from ..config import require_root
from ..errors import ContextEngineError
from ..retrieval.indexer import build_index, save_index


def index(
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Rebuild context/.index/index.json from packets, ADRs and journal."""
    try:
        root = require_root(base)
        context_index = build_index(root)
        path = save_index(context_index, root)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    counts: dict[str, int] = {}
    for entry in context_index.entries:
        counts[entry.type] = counts.get(entry.type, 0) + 1

    typer.echo(f"✓ Indexed {len(context_index.entries)} entries")
    for entry_type in ("packet", "adr", "journal"):
        typer.echo(f"  {entry_type}: {counts.get(entry_type, 0)}")
    typer.echo(f"  Symbols: {len(context_index.symbol_map)}")
    typer.echo(f"  Written to {path.relative_to(root).as_posix()}")
