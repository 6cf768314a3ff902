"""Keyword extraction from free text and code identifiers."""
import re
from typing import Iterable

from ..models import Candidate, Packet


STOPWORDS = frozenset({
    "the", "and", "with", "from", "this", "that", "into", "over", "for",
    "are", "was", "were", "been", "being", "have", "has", "had", "having",
    "does", "did", "doing", "will", "would", "could", "should", "shall",
    "can", "may", "might", "must", "need", "use", "used", "using",
    "all", "any", "both", "each", "few", "more", "most", "other", "some",
    "such", "than", "too", "very", "just", "also", "now", "only",
    "src", "lib", "app", "apps", "index", "main", "test", "tests",
})

MIN_KEYWORD_LENGTH = 3

_NON_WORD = re.compile(r"[^A-Za-z0-9\s_-]")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[_\-\s]+")
_PATH_SEPARATORS = re.compile(r"[/\\]")


def _keep(word: str) -> bool:
    return len(word) >= MIN_KEYWORD_LENGTH and word not in STOPWORDS


def split_identifier(identifier: str) -> list[str]:
    """Split a compound identifier into lowercase sub-words.

    ``handleOAuthCallback`` yields handle, auth, callback and the whole
    lowercased identifier; sub-words that are too short or stopwords are
    dropped.
    """
    spaced = _ACRONYM_BOUNDARY.sub(r"\1 \2", identifier)
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", spaced)

    parts: list[str] = []
    for word in _SEPARATORS.split(spaced):
        lower = word.lower()
        if lower and _keep(lower) and lower not in parts:
            parts.append(lower)

    full = identifier.lower()
    if _keep(full) and full not in parts:
        parts.append(full)

    return parts


def extract_keywords(text: str) -> set[str]:
    """Searchable keywords from free text, identifiers included."""
    if not text:
        return set()

    keywords: set[str] = set()
    for token in _NON_WORD.sub(" ", text).split():
        keywords.update(split_identifier(token))
    return keywords


def keywords_from(sources: Iterable[str]) -> set[str]:
    """Union of keywords over several text sources."""
    keywords: set[str] = set()
    for source in sources:
        keywords |= extract_keywords(source)
    return keywords


def packet_keywords(packet: Packet) -> set[str]:
    """Keywords describing a packet's intent, anchors included."""
    sources: list[str] = [packet.title, packet.goal, *packet.constraints, *packet.dod]

    for anchor in packet.repo_truth:
        sources.append(anchor.symbol)
        sources.extend(p for p in _PATH_SEPARATORS.split(anchor.path) if p)

    return keywords_from(sources)


def candidate_keywords(candidate: Candidate) -> set[str]:
    """Precomputed keywords when present, otherwise extracted from the candidate."""
    if candidate.keywords:
        return set(candidate.keywords)

    sources: list[str] = [candidate.text]
    if candidate.title:
        sources.append(candidate.title)
    sources.extend(candidate.paths)
    sources.extend(candidate.symbols)

    return keywords_from(sources)
