"""Keyword search across packets, ADRs, journal entries and the repo map."""
from pathlib import Path
from typing import Iterable, Optional

from ..config import REPO_MAP_FILE
from ..models import QueryResult, QueryType
from ..packets import PacketManager
from ..records import journal_entry_id, journal_path, load_adr_files, load_journal_entries
from .indexer import load_index
from .keywords import extract_keywords, keywords_from
from .relevance import jaccard


TITLE_MATCH_SCORE = 1.0
SYMBOL_MATCH_SCORE = 0.5
KEYWORD_WEIGHT = 0.3
REPO_MAP_SCORE = 0.4
SNIPPET_LENGTH = 200

ALL_TYPES: tuple[QueryType, ...] = ("packet", "adr", "journal", "repo-map")


def _score(
    query_lower: str,
    query_keywords: set[str],
    doc_id: str,
    title: str,
    texts: Iterable[str],
    symbols: Iterable[str] = (),
) -> tuple[float, list[str]]:
    score = 0.0
    matches: list[str] = []

    if doc_id.lower() == query_lower or (query_lower and query_lower in title.lower()):
        score += TITLE_MATCH_SCORE
        matches.append("title/id match")

    for symbol in symbols:
        if symbol.lower() in query_lower:
            score += SYMBOL_MATCH_SCORE
            matches.append(f"symbol: {symbol}")

    overlap = jaccard(query_keywords, keywords_from([doc_id, title, *texts]))
    if overlap > 0:
        score += overlap * KEYWORD_WEIGHT
        matches.append(f"keyword overlap: {overlap * 100:.0f}%")

    return score, matches


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _search_repo_map(query_lower: str, root: Path) -> Optional[QueryResult]:
    """Fixed-score hit when the repo map contains the query verbatim."""
    path = root / REPO_MAP_FILE
    if not query_lower or not path.exists():
        return None

    content = path.read_text(encoding="utf-8")
    if query_lower not in content.lower():
        return None

    return QueryResult(
        id="repo-map",
        type="repo-map",
        title="Repository Map",
        path=REPO_MAP_FILE.as_posix(),
        snippet=content[:SNIPPET_LENGTH],
        score=REPO_MAP_SCORE,
        matches=["content match"],
    )


def search(
    query: str,
    root: Path,
    types: Optional[Iterable[QueryType]] = None,
    max_results: int = 10,
    manager: Optional[PacketManager] = None,
) -> list[QueryResult]:
    """Rank packets, ADRs, journal entries and the repo map against a query.

    Packet symbols come from the saved index when one exists, so anchors
    named in the query score even when the packet text never mentions them.
    """
    wanted = set(types or ALL_TYPES)
    query_lower = query.strip().lower()
    query_keywords = extract_keywords(query)
    results: list[QueryResult] = []

    if "packet" in wanted:
        manager = manager or PacketManager(root)
        index = load_index(root)
        indexed_symbols = {
            e.id: e.symbols for e in index.entries if e.type == "packet"
        } if index else {}

        for packet in manager.list_packets():
            symbols = indexed_symbols.get(packet.id, [a.symbol for a in packet.repo_truth])
            score, matches = _score(
                query_lower, query_keywords, packet.id, packet.title,
                [packet.goal, *packet.dod, *packet.constraints], symbols,
            )
            if score > 0:
                results.append(QueryResult(
                    id=packet.id,
                    type="packet",
                    title=packet.title,
                    path=_relative(manager.find_path(packet.id) or root, root),
                    snippet=packet.goal[:SNIPPET_LENGTH],
                    score=score,
                    matches=matches,
                ))

    if "adr" in wanted:
        for path, adr in load_adr_files(root):
            score, matches = _score(
                query_lower, query_keywords, adr.id, adr.title,
                [adr.decision, adr.context, *adr.consequences],
            )
            if score > 0:
                results.append(QueryResult(
                    id=adr.id,
                    type="adr",
                    title=adr.title,
                    path=_relative(path, root),
                    snippet=adr.decision[:SNIPPET_LENGTH],
                    score=score,
                    matches=matches,
                ))

    if "journal" in wanted:
        for entry in load_journal_entries(root):
            entry_id = journal_entry_id(entry)
            score, matches = _score(
                query_lower, query_keywords, entry_id, entry.summary,
                [entry.packet_id, *entry.changed_files, *entry.risks],
            )
            if score > 0:
                results.append(QueryResult(
                    id=entry_id,
                    type="journal",
                    title=f"{entry.packet_id}: {entry.summary[:60]}",
                    path=_relative(journal_path(entry.timestamp, root), root),
                    snippet=entry.summary[:SNIPPET_LENGTH],
                    score=score,
                    matches=matches,
                ))

    if "repo-map" in wanted:
        repo_map = _search_repo_map(query_lower, root)
        if repo_map is not None:
            results.append(repo_map)

    results.sort(key=lambda r: -r.score)
    return results[:max_results]
