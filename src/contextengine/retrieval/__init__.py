"""Relevance ranking, context assembly and search."""
from .assembler import (
    ContextPack,
    adr_to_candidate,
    assemble_context_pack,
    build_anchors_section,
    build_context_section,
    build_header_section,
    build_rules_section,
    gather_candidates,
    journal_to_candidate,
)
from .indexer import build_index, load_index, save_index
from .keywords import candidate_keywords, extract_keywords, packet_keywords, split_identifier
from .relevance import (
    SelectionResult,
    jaccard,
    rank_candidates,
    recency_boost,
    score_candidate,
    select_by_token_budget,
)
from .search import search
from .tokens import Tokenizer, default_tokenizer

__all__ = [
    "ContextPack",
    "adr_to_candidate",
    "assemble_context_pack",
    "build_anchors_section",
    "build_context_section",
    "build_header_section",
    "build_rules_section",
    "gather_candidates",
    "journal_to_candidate",
    "build_index",
    "load_index",
    "save_index",
    "candidate_keywords",
    "extract_keywords",
    "packet_keywords",
    "split_identifier",
    "SelectionResult",
    "jaccard",
    "rank_candidates",
    "recency_boost",
    "score_candidate",
    "select_by_token_budget",
    "search",
    "Tokenizer",
    "default_tokenizer",
]
