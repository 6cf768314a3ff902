"""Assemble a token-bounded context pack for a packet."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config import SAFETY_RESERVE_TOKENS, load_config
from ..logging import log_event
from ..models import ADR, Candidate, JournalEntry, Packet, RelevanceResult
from ..packets import PacketManager
from ..records import journal_entry_id, load_adrs, load_journal_entries
from .relevance import rank_candidates, select_by_token_budget
from .tokens import TokenCounter, default_tokenizer


SECTION_SEPARATOR = "\n\n---\n\n"

HASH_PREVIEW_LENGTH = 20
JOURNAL_TITLE_LENGTH = 50

RULES_SECTION = """## Rules for Agent

When working on this packet:

1. **Cite file paths and symbols.** Always reference the exact file paths and symbol names from the anchors above.
2. **Do not assume line numbers.** Line numbers may have changed; use semantic anchors to locate code.
3. **Check for drift.** If code structure seems different from the anchors, flag it for review.
4. **Respect constraints.** Follow all constraints listed above.
5. **Complete DoD items.** Work toward completing each definition-of-done item.
"""


@dataclass
class ContextPack:
    """An assembled context pack and how its budget was spent."""
    packet_id: str
    text: str
    token_count: int
    max_tokens: int
    fixed_tokens: int
    selected: list[RelevanceResult] = field(default_factory=list)
    dropped: list[RelevanceResult] = field(default_factory=list)

    @property
    def within_budget(self) -> bool:
        return self.token_count <= self.max_tokens


def build_header_section(packet: Packet) -> str:
    lines = [
        f"# Context Pack: {packet.id}",
        "",
        f"**Title:** {packet.title}",
        f"**Status:** {packet.status.value}",
        "",
        "## Goal",
        packet.goal,
        "",
        "## Definition of Done",
        *(f"- [ ] {item}" for item in packet.dod),
    ]

    if packet.constraints:
        lines += ["", "## Constraints", *(f"- {c}" for c in packet.constraints)]

    return "\n".join(lines)


def build_anchors_section(packet: Packet) -> str:
    if not packet.repo_truth:
        return "## Repo Truth\n\n_No anchors defined._"

    lines = ["## Repo Truth (Semantic Anchors)", ""]
    for anchor in packet.repo_truth:
        lines.append(f"### `{anchor.symbol}`")
        lines.append(f"- **Path:** `{anchor.path}`")
        lines.append(f"- **Type:** {anchor.symbol_type.value}")
        lines.append(f"- **Hash:** `{anchor.semantic_hash[:HASH_PREVIEW_LENGTH]}...`")
        lines.append(f"- **Captured:** {anchor.captured_at.isoformat()}")
        if anchor.signature:
            lines.append(f"- **Signature:** `{anchor.signature}`")
        if anchor.line_start and anchor.line_end:
            lines.append(f"- **Lines:** {anchor.line_start}-{anchor.line_end}")
        lines.append("")

    return "\n".join(lines)


def build_rules_section() -> str:
    return RULES_SECTION


def adr_to_candidate(adr: ADR) -> Candidate:
    return Candidate(
        id=adr.id,
        type="adr",
        title=adr.title,
        text="\n".join([adr.title, adr.decision, *adr.consequences]),
        paths=list(adr.affected_areas),
        timestamp=adr.created_at,
    )


def journal_to_candidate(entry: JournalEntry) -> Candidate:
    title = entry.summary[:JOURNAL_TITLE_LENGTH]
    if len(entry.summary) > JOURNAL_TITLE_LENGTH:
        title += "..."
    return Candidate(
        id=journal_entry_id(entry),
        type="journal",
        title=f"Journal: {title}",
        text="\n".join([entry.summary, *entry.changed_files]),
        paths=list(entry.changed_files),
        timestamp=entry.timestamp,
    )


def gather_candidates(
    root: Path,
    journal_window_days: int,
    now: Optional[datetime] = None,
) -> list[Candidate]:
    """Every ADR plus the journal entries inside the trailing window."""
    candidates = [adr_to_candidate(adr) for adr in load_adrs(root)]

    seen: set[str] = set()
    for entry in load_journal_entries(root, window_days=journal_window_days, now=now):
        candidate = journal_to_candidate(entry)
        # Same short commit recorded twice keeps the first entry
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        candidates.append(candidate)

    return candidates


def build_context_section(
    selected: list[RelevanceResult],
    candidates: dict[str, Candidate],
) -> str:
    """Related Context section grouping selected ADRs and journal entries."""
    lines = ["## Related Context", ""]

    adrs = [r for r in selected if r.type == "adr" and r.id in candidates]
    if adrs:
        lines += ["### Related ADRs", ""]
        for result in adrs:
            candidate = candidates[result.id]
            lines.append(f"**{candidate.id}: {candidate.title}** (score: {result.score:.2f})")
            lines.append(f"_Reasons: {', '.join(result.reasons)}_")
            lines.append("")
            lines.append(candidate.text)
            lines.append("")

    journals = [r for r in selected if r.type == "journal" and r.id in candidates]
    if journals:
        lines += ["### Recent Journal Entries", ""]
        for result in journals:
            candidate = candidates[result.id]
            timestamp = candidate.timestamp.isoformat() if candidate.timestamp else "unknown"
            lines.append(f"**{candidate.title}** (score: {result.score:.2f})")
            lines.append(f"_Timestamp: {timestamp}_")
            lines.append(f"_Reasons: {', '.join(result.reasons)}_")
            lines.append("")
            lines.append(candidate.text)
            lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def render_pack(
    fixed_sections: list[str],
    selected: list[RelevanceResult],
    candidates: dict[str, Candidate],
) -> str:
    sections = list(fixed_sections)
    if selected:
        sections.append(build_context_section(selected, candidates))
    return SECTION_SEPARATOR.join(sections)


def assemble_context_pack(
    packet_id: str,
    root: Path,
    max_tokens: int,
    tokenizer: Optional[TokenCounter] = None,
    manager: Optional[PacketManager] = None,
    now: Optional[datetime] = None,
) -> ContextPack:
    """Build the context pack for a packet under a token budget.

    The header, anchors and rules sections are always included. Related
    ADRs and journal entries are ranked against the packet and added while
    they fit in what remains after a 200-token safety reserve. If the
    rendered pack still measures over max_tokens, the lowest-ranked
    related items are dropped until it fits or none remain.

    Raises:
        PacketNotFound: If the packet does not exist.
        NotInitialized, ConfigInvalid: If the project config cannot be loaded.
        ExternalFetchFailure: If the tokenizer cannot be loaded.
    """
    config = load_config(root)
    manager = manager or PacketManager(root)
    packet = manager.load_packet(packet_id)
    tokenizer = tokenizer or default_tokenizer(config.tokenizer_model)
    now = now or datetime.now(timezone.utc)

    fixed_sections = [
        build_header_section(packet),
        build_anchors_section(packet),
        build_rules_section(),
    ]
    fixed_tokens = sum(tokenizer.count(section) for section in fixed_sections)
    remaining_budget = max_tokens - fixed_tokens - SAFETY_RESERVE_TOKENS

    candidates = gather_candidates(root, config.relevance.journal_window_days, now=now)
    by_id = {c.id: c for c in candidates}
    ranked = rank_candidates(packet, candidates, config.relevance, now=now)

    selected: list[RelevanceResult] = []
    if remaining_budget > 0 and ranked:
        estimates = {c.id: tokenizer.count(c.text) for c in candidates}
        selection = select_by_token_budget(
            ranked,
            estimates,
            remaining_budget,
            stop_ratio=config.relevance.budget_stop_ratio,
        )
        selected = selection.selected

    text = render_pack(fixed_sections, selected, by_id)
    token_count = tokenizer.count(text)

    dropped: list[RelevanceResult] = []
    while selected and token_count > max_tokens:
        dropped.append(selected.pop())
        text = render_pack(fixed_sections, selected, by_id)
        token_count = tokenizer.count(text)

    if dropped:
        log_event("candidates_dropped", {
            "packet": packet_id,
            "dropped": [r.id for r in dropped],
            "tokens": token_count,
            "max_tokens": max_tokens,
        }, root)

    return ContextPack(
        packet_id=packet_id,
        text=text,
        token_count=token_count,
        max_tokens=max_tokens,
        fixed_tokens=fixed_tokens,
        selected=selected,
        dropped=dropped,
    )
