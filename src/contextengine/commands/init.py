"""Initialize Context Engine in a repository."""

import typer
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config import (
    ADRS_DIR,
    CE_DIR,
    CONFIG_FILE,
    INDEX_FILE,
    PACKETS_ACTIVE_DIR,
    PACKETS_COMPLETED_DIR,
    REPO_MAP_FILE,
    is_initialized,
    save_config,
    save_current_context,
)
from ..models import ContextConfig, ContextIndex, ProjectConfig
from ..logging import CE_LOGS_DIR
from ..records.journal import SEPARATOR, journal_path
from ..storage import write_json


GITIGNORE_ENTRIES = [f"{CE_DIR}/", f"{CE_LOGS_DIR}/", "context/.index/"]

REPO_MAP_TEMPLATE = """# Repository Map

## Overview
{description}

## Key Directories
- `src/` - Source code
- `docs/` - Documentation
- `tests/` - Test files

## Key Files
- Add important files and their purposes here

## Architecture Notes
- Add architecture notes here

---
*Last updated: {updated}*
"""


def _write_repo_map(base_path: Path, description: str, now: datetime) -> bool:
    """Write the repository map template unless one already exists.

    Returns True if the file was created.
    """
    repo_map = base_path / REPO_MAP_FILE
    if repo_map.exists():
        return False

    repo_map.parent.mkdir(parents=True, exist_ok=True)
    repo_map.write_text(
        REPO_MAP_TEMPLATE.format(
            description=description or "Add a description of your project here.",
            updated=now.date().isoformat(),
        ),
        encoding="utf-8",
    )
    return True


def _ensure_gitignore(base_path: Path) -> bool:
    """Add local state directories to .gitignore if not already present.

    Returns True if the file was modified.
    """
    gitignore = base_path / ".gitignore"

    existing_lines = []
    if gitignore.exists():
        existing_lines = gitignore.read_text(encoding="utf-8").splitlines()

    missing = [e for e in GITIGNORE_ENTRIES if e not in existing_lines]
    if not missing:
        return False

    with open(gitignore, "a", encoding="utf-8") as f:
        if existing_lines and existing_lines[-1].strip():
            f.write("\n")
        f.write("# Context Engine (generated)\n")
        for entry in missing:
            f.write(f"{entry}\n")

    return True


def init(
    path: Path = typer.Argument(
        Path("."),
        help="Path to initialize Context Engine in"
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name (defaults to directory name)"),
    description: str = typer.Option("", "--description", "-d", help="Project description"),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration"
    ),
) -> None:
    """Initialize Context Engine.

    Creates the context/ document store, a default configuration and an
    empty index, and adds local state to .gitignore.

    Example:
        ce init
        ce init --name my-app --force
    """
    root = path.resolve()

    if is_initialized(root) and not force:
        typer.echo(f"Context Engine already initialized at {root}")
        typer.echo("Use --force to reinitialize")
        raise typer.Exit(1)

    for directory in (PACKETS_ACTIVE_DIR, PACKETS_COMPLETED_DIR, ADRS_DIR, INDEX_FILE.parent):
        (root / directory).mkdir(parents=True, exist_ok=True)

    config = ContextConfig(
        project=ProjectConfig(name=name or root.name, description=description),
    )
    save_config(config, root)
    write_json(root / INDEX_FILE, ContextIndex())
    save_current_context(None, root)

    now = datetime.now(timezone.utc)
    journal_file = journal_path(now, root)
    journal_file.parent.mkdir(parents=True, exist_ok=True)
    if not journal_file.exists():
        journal_file.write_text(f"# Journal - {now.strftime('%B %Y')}\n\n{SEPARATOR}\n\n", encoding="utf-8")

    repo_map_created = _write_repo_map(root, description, now)
    gitignore_updated = _ensure_gitignore(root)

    typer.echo(f"Initialized Context Engine at {root}")
    typer.echo(f"  Config: {CONFIG_FILE.as_posix()}")
    typer.echo("  Packets: context/packets/{active,completed}/")
    typer.echo(f"  ADRs: {ADRS_DIR.as_posix()}/")
    typer.echo(f"  Journal: {journal_file.relative_to(root).as_posix()}")
    if repo_map_created:
        typer.echo(f"  Repo map: {REPO_MAP_FILE.as_posix()}")
    if gitignore_updated:
        typer.echo("  Updated .gitignore")
    typer.echo("")
    typer.echo("Next steps:")
    typer.echo('  ce packet create feat "Your feature" --goal "..." --dod "..."')
    typer.echo("  ce switch FEAT-001")
    typer.echo("  ce assemble")
