"""Context health command."""
import typer
from pathlib import Path

from ..config import require_root
from ..errors import ContextEngineError
from ..reporting import check_health, format_health_plain, print_health_rich


def health(
    fail: bool = typer.Option(False, "--fail", help="Exit with code 1 if issues are found"),
    plain: bool = typer.Option(False, "--plain", help="Plain text output"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Check the repo map and active packets for drift, missing anchors and inactivity.

    Example:
        ce health
        ce health --fail      # for CI
    """
    try:
        root = require_root(base)
        report = check_health(root)
    except (ContextEngineError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if plain:
        typer.echo(format_health_plain(report))
    else:
        print_health_rich(report)

    if fail and not report.healthy:
        raise typer.Exit(1)
