"""Search packets, ADRs, journal entries and the repo map."""
import typer
from pathlib import Path
from typing import List, Optional

from ..config import require_root
from ..errors import ContextEngineError
from ..retrieval.search import ALL_TYPES, search


def query(
    text: str = typer.Argument(..., help="Search query"),
    types: Optional[List[str]] = typer.Option(None, "--type", "-t", help="Restrict to packet, adr, journal or repo-map (repeatable)"),
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Maximum results"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Search the document store.

    Example:
        ce query "oauth callback"
        ce query handleOAuthCallback --type packet
    """
    if types:
        unknown = [t for t in types if t not in ALL_TYPES]
        if unknown:
            typer.echo(f"Error: unknown type(s): {', '.join(unknown)}", err=True)
            raise typer.Exit(1)

    try:
        root = require_root(base)
        results = search(text, root, types=types, max_results=limit)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not results:
        typer.echo("No results found.")
        return

    typer.echo(f"Results for '{text}' ({len(results)}):")
    typer.echo("-" * 60)
    for result in results:
        typer.echo(f"[{result.type}] {result.id}: {result.title} (score: {result.score:.2f})")
        typer.echo(f"  {result.path}")
        if result.matches:
            typer.echo(f"  Matches: {', '.join(result.matches)}")
