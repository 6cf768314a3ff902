"""Keyword index over packets, ADRs and journal entries."""
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..config import INDEX_FILE
from ..errors import ConfigInvalid
from ..models import ContextIndex, IndexEntry
from ..packets import PacketManager
from ..records import journal_entry_id, load_adrs, load_journal_entries
from ..storage import write_json
from .keywords import extract_keywords, keywords_from


def build_index(root: Path, manager: Optional[PacketManager] = None) -> ContextIndex:
    """Index every packet, ADR and journal entry under root.

    ``symbol_map`` and ``path_map`` point anchor symbols and paths back to
    the packets that anchor them.
    """
    manager = manager or PacketManager(root)
    entries: list[IndexEntry] = []
    symbol_map: dict[str, list[str]] = {}
    path_map: dict[str, list[str]] = {}

    for packet in manager.list_packets():
        symbols = [a.symbol for a in packet.repo_truth]
        paths = [a.path for a in packet.repo_truth]
        keywords = keywords_from([packet.title, packet.goal, *packet.dod])

        entries.append(IndexEntry(
            id=packet.id,
            type="packet",
            keywords=sorted(keywords),
            paths=paths,
            symbols=symbols,
            timestamp=packet.metadata.updated_at,
            status=packet.status.value,
        ))

        for symbol in symbols:
            ids = symbol_map.setdefault(symbol, [])
            if packet.id not in ids:
                ids.append(packet.id)
        for path in paths:
            ids = path_map.setdefault(path, [])
            if packet.id not in ids:
                ids.append(packet.id)

    for adr in load_adrs(root):
        keywords = keywords_from([adr.title, adr.decision, *adr.consequences, *adr.affected_areas])
        entries.append(IndexEntry(
            id=adr.id,
            type="adr",
            keywords=sorted(keywords),
            paths=list(adr.affected_areas),
            timestamp=adr.created_at,
            status=adr.status.value,
        ))

    for entry in load_journal_entries(root):
        keywords = extract_keywords(" ".join([entry.summary, *entry.changed_files]))
        entries.append(IndexEntry(
            id=journal_entry_id(entry),
            type="journal",
            keywords=sorted(keywords),
            paths=list(entry.changed_files),
            timestamp=entry.timestamp,
        ))

    return ContextIndex(
        built_at=datetime.now(timezone.utc),
        entries=entries,
        symbol_map=symbol_map,
        path_map=path_map,
    )


def save_index(index: ContextIndex, root: Path) -> Path:
    path = root / INDEX_FILE
    write_json(path, index)
    return path


def load_index(root: Path) -> Optional[ContextIndex]:
    """The saved index, or None if it has not been built yet.

    Raises:
        ConfigInvalid: If the index file exists but cannot be parsed.
    """
    path = root / INDEX_FILE
    if not path.exists():
        return None
    try:
        return ContextIndex.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise ConfigInvalid(f"{path}: {e}") from e
