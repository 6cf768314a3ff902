"""Relevance scoring, ranking and token-budget selection of candidates."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional

from ..models import Candidate, Packet, RelevanceConfig, RelevanceResult
from .keywords import candidate_keywords, packet_keywords


MAX_SCORE = 1.5
DEFAULT_TOKEN_ESTIMATE = 500
DEFAULT_STOP_RATIO = 0.95

SECONDS_PER_DAY = 60 * 60 * 24


def jaccard(a: set[str], b: set[str]) -> float:
    """|A∩B| / |A∪B|, 0 when both sets are empty."""
    if not a and not b:
        return 0.0
    union = len(a | b)
    return len(a & b) / union if union else 0.0


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def days_since(timestamp: datetime, now: Optional[datetime] = None) -> float:
    """Fractional days from timestamp to now, never negative."""
    now = _as_utc(now or datetime.now(timezone.utc))
    delta = now - _as_utc(timestamp)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def recency_boost(
    timestamp: Optional[datetime],
    config: RelevanceConfig,
    now: Optional[datetime] = None,
) -> float:
    """Linearly decaying boost for recent material."""
    if timestamp is None:
        return 0.0
    days = days_since(timestamp, now)
    return max(0.0, config.recency.journal_max - days * config.recency.decay_per_day)


def score_candidate(
    packet: Packet,
    candidate: Candidate,
    config: RelevanceConfig,
    now: Optional[datetime] = None,
    packet_kw: Optional[set[str]] = None,
) -> RelevanceResult:
    """Score one candidate against a packet.

    The score sums keyword overlap (jaccard) with one-off boosts for symbol
    matches, path overlap, explicit ADR links and journal recency, capped at
    1.5. ``reasons`` lists each contributing factor in that order.
    """
    packet_kw = packet_keywords(packet) if packet_kw is None else packet_kw
    candidate_kw = candidate_keywords(candidate)
    reasons: list[str] = []

    overlap = jaccard(packet_kw, candidate_kw)
    shared = sorted(packet_kw & candidate_kw)
    if shared:
        reasons.append(f"keyword_overlap: {', '.join(shared[:5])}")

    symbol_boost = 0.0
    candidate_symbols = {s.lower() for s in candidate.symbols}
    matched_symbols: list[str] = []
    for anchor in packet.repo_truth:
        symbol_lower = anchor.symbol.lower()
        if symbol_lower in candidate_kw or symbol_lower in candidate_symbols:
            if anchor.symbol not in matched_symbols:
                matched_symbols.append(anchor.symbol)
    if matched_symbols:
        symbol_boost = config.boosts.symbol_match
        reasons.append(f"symbol_match: {', '.join(matched_symbols)}")

    path_boost = 0.0
    matched_paths: list[str] = []
    for anchor in packet.repo_truth:
        for candidate_path in candidate.paths:
            if not candidate_path:
                continue
            if candidate_path in anchor.path or anchor.path in candidate_path:
                if candidate_path not in matched_paths:
                    matched_paths.append(candidate_path)
    if matched_paths:
        path_boost = config.boosts.path_overlap
        reasons.append(f"path_overlap: {', '.join(matched_paths[:3])}")

    explicit_boost = 0.0
    if candidate.type == "adr" and candidate.id in packet.metadata.related_adrs:
        explicit_boost = config.boosts.explicit_link
        reasons.append("explicit_link: linked in packet")

    recency = 0.0
    if candidate.type == "journal" and candidate.timestamp is not None:
        recency = recency_boost(candidate.timestamp, config, now)
        if recency > 0:
            reasons.append(f"recency: {int(days_since(candidate.timestamp, now))} days ago")

    score = min(MAX_SCORE, overlap + symbol_boost + path_boost + explicit_boost + recency)

    return RelevanceResult(
        id=candidate.id,
        type=candidate.type,
        score=score,
        reasons=reasons,
    )


def rank_candidates(
    packet: Packet,
    candidates: list[Candidate],
    config: RelevanceConfig,
    now: Optional[datetime] = None,
) -> list[RelevanceResult]:
    """Score, filter by min_score, sort descending (stable) and truncate."""
    packet_kw = packet_keywords(packet)
    results = [
        score_candidate(packet, candidate, config, now=now, packet_kw=packet_kw)
        for candidate in candidates
    ]
    results = [r for r in results if r.score >= config.min_score]
    results.sort(key=lambda r: -r.score)
    return results[:config.max_candidates]


@dataclass
class SelectionResult:
    """Ranked results that fit the token budget."""
    selected: list[RelevanceResult] = field(default_factory=list)
    total_tokens: int = 0


def select_by_token_budget(
    ranked: list[RelevanceResult],
    token_estimates: Mapping[str, int],
    max_tokens: int,
    reserved_tokens: int = 0,
    stop_ratio: float = DEFAULT_STOP_RATIO,
) -> SelectionResult:
    """Greedily take ranked results while they fit in max_tokens.

    Selection stops as soon as the running total reaches ``stop_ratio`` of
    the usable budget (max_tokens - reserved_tokens), even if a smaller
    later item would still fit. Missing estimates count as 500 tokens.
    """
    selected: list[RelevanceResult] = []
    total = reserved_tokens
    available = max_tokens - reserved_tokens

    for result in ranked:
        estimate = token_estimates.get(result.id, DEFAULT_TOKEN_ESTIMATE)
        if total + estimate <= max_tokens:
            selected.append(result)
            total += estimate

        if total >= available * stop_ratio:
            break

    return SelectionResult(selected=selected, total_tokens=total)
