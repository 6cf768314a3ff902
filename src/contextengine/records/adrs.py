"""Architecture decision records stored as front-matter markdown."""
import re
from pathlib import Path
from typing import Optional

import yaml

from ..config import ADRS_DIR
from ..logging import log_event
from ..models import ADR
from ..storage import read_markdown, write_markdown


_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def adr_path(adr_id: str, title: str, root: Path) -> Path:
    """File path for an ADR: ``context/adrs/ADR-0001-some-title.md``."""
    slug = _SLUG_INVALID.sub("-", title.lower()).strip("-")
    return root / ADRS_DIR / f"{adr_id}-{slug}.md"


def read_adr(path: Path) -> ADR:
    """Parse one ADR file.

    Raises:
        OSError, ValueError, yaml.YAMLError: If the file cannot be read or
            its front matter is not a valid ADR.
    """
    document = read_markdown(path)
    return ADR.model_validate(document.data)


def load_adr_files(root: Path) -> list[tuple[Path, ADR]]:
    """Readable ADRs with their files, ordered by file name.

    A malformed file is skipped with an ``adr_skipped`` event rather than
    failing the whole load.
    """
    adrs_dir = root / ADRS_DIR
    if not adrs_dir.is_dir():
        return []

    adrs: list[tuple[Path, ADR]] = []
    for path in sorted(adrs_dir.glob("*.md")):
        try:
            adrs.append((path, read_adr(path)))
        except (OSError, ValueError, yaml.YAMLError) as e:
            log_event("adr_skipped", {"path": path.name, "error": str(e).split("\n", 1)[0]}, root)
    return adrs


def load_adrs(root: Path) -> list[ADR]:
    return [adr for _, adr in load_adr_files(root)]


def get_adr(adr_id: str, root: Path) -> Optional[ADR]:
    for adr in load_adrs(root):
        if adr.id == adr_id:
            return adr
    return None


def save_adr(adr: ADR, root: Path, body: str = "") -> Path:
    path = adr_path(adr.id, adr.title, root)
    write_markdown(path, adr, body)
    return path
