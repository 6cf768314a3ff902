"""Pydantic models for Context Engine records."""

from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


# === Enumerations ===

class Language(str, Enum):
    """Language tags with a registered grammar."""

    TS = "ts"
    TSX = "tsx"
    JS = "js"
    JSX = "jsx"
    PY = "py"


class SymbolKind(str, Enum):
    """Kinds of named declarations the extractor reports."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    VARIABLE = "variable"


class DriftStatus(str, Enum):
    """Result of checking an anchor against the working tree."""

    VALID = "valid"
    SEMANTIC_DRIFT = "semantic_drift"
    DELETED = "deleted"


class PacketType(str, Enum):
    """Kind of work a packet tracks."""

    FEAT = "feat"
    BUG = "bug"
    CHORE = "chore"
    REFACTOR = "refactor"
    DOCS = "docs"
    TEST = "test"


class PacketStatus(str, Enum):
    """Lifecycle status of a packet."""

    DRAFT = "draft"
    ACTIVE = "active"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


VALID_STATUS_TRANSITIONS: dict[PacketStatus, list[PacketStatus]] = {
    PacketStatus.DRAFT: [PacketStatus.ACTIVE],
    PacketStatus.ACTIVE: [PacketStatus.BLOCKED, PacketStatus.COMPLETED, PacketStatus.CANCELLED],
    PacketStatus.BLOCKED: [PacketStatus.ACTIVE, PacketStatus.CANCELLED],
    PacketStatus.COMPLETED: [],
    PacketStatus.CANCELLED: [],
}

CLOSED_STATUSES = {PacketStatus.COMPLETED, PacketStatus.CANCELLED}


class ADRStatus(str, Enum):
    """Status of an architecture decision record."""

    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    DEPRECATED = "deprecated"
    SUPERSEDED = "superseded"


CandidateType = Literal["adr", "journal", "packet"]

# Search also covers the repository map, which is never a relevance candidate
QueryType = Literal["adr", "journal", "packet", "repo-map"]


# === Anchors ===

class SemanticAnchor(BaseModel):
    """A hash-verifiable pointer from a packet to a named code symbol."""

    path: str = Field(min_length=1)  # Forward-slash path relative to the project root
    symbol: str
    language: Language
    symbol_type: SymbolKind
    anchor_type: Literal["semantic_hash"] = "semantic_hash"
    semantic_hash: str = Field(pattern=r"^sha256:[a-f0-9]{64}$")
    git_ref: str = Field(min_length=1)
    captured_at: datetime
    signature: Optional[str] = None
    line_start: Optional[int] = Field(default=None, ge=1)
    line_end: Optional[int] = Field(default=None, ge=1)


# === Packets ===

class PacketMetadata(BaseModel):
    """Bookkeeping fields of a packet."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    author: Optional[str] = None
    branch_name: Optional[str] = None
    related_adrs: list[str] = Field(default_factory=list)
    related_packets: list[str] = Field(default_factory=list)


class Packet(BaseModel):
    """A small unit of work with its goal, definition of done and anchors."""

    id: str = Field(pattern=r"^(FEAT|BUG|CHORE|REFACTOR|DOCS|TEST)-\d{3,}$")
    type: PacketType
    title: str = Field(min_length=1)
    status: PacketStatus = PacketStatus.DRAFT
    goal: str = Field(min_length=1)
    dod: list[str] = Field(min_length=1)  # Definition-of-done items
    constraints: list[str] = Field(default_factory=list)
    tests: list[str] = Field(default_factory=list)
    repo_truth: list[SemanticAnchor] = Field(default_factory=list)
    metadata: PacketMetadata = Field(default_factory=PacketMetadata)


# === Decision records and journal ===

class ADR(BaseModel):
    """Architecture decision record."""

    id: str = Field(pattern=r"^ADR-\d{4}$")
    title: str
    status: ADRStatus = ADRStatus.PROPOSED
    decision: str
    context: str = ""
    consequences: list[str] = Field(default_factory=list)
    affected_areas: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None


class JournalEntry(BaseModel):
    """One journal block recording a commit against a packet."""

    packet_id: str
    commit_sha: str
    changed_files: list[str] = Field(default_factory=list)
    summary: str = ""
    risks: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    timestamp: datetime


# === Relevance ===

class Candidate(BaseModel):
    """A piece of contextual material eligible for a context pack."""

    id: str
    type: CandidateType
    title: Optional[str] = None
    text: str
    keywords: Optional[list[str]] = None  # Precomputed, e.g. from the index
    timestamp: Optional[datetime] = None
    paths: list[str] = Field(default_factory=list)
    symbols: list[str] = Field(default_factory=list)


class RelevanceResult(BaseModel):
    """Score of one candidate against a packet, with contributing factors."""

    id: str
    type: CandidateType
    score: float
    reasons: list[str] = Field(default_factory=list)


class RelevanceBoosts(BaseModel):
    symbol_match: float = 0.3
    path_overlap: float = 0.2
    explicit_link: float = 0.5


class RecencyConfig(BaseModel):
    journal_max: float = 0.2
    decay_per_day: float = Field(default=0.002, ge=0)


class RelevanceConfig(BaseModel):
    """Tuning for candidate scoring, ranking and budget selection."""

    journal_window_days: int = Field(default=30, ge=0)
    max_candidates: int = Field(default=200, ge=0)
    boosts: RelevanceBoosts = Field(default_factory=RelevanceBoosts)
    recency: RecencyConfig = Field(default_factory=RecencyConfig)
    min_score: float = 0.05
    # Stop filling the budget once this share of it is used
    budget_stop_ratio: float = Field(default=0.95, gt=0, le=1)


# === Index ===

class IndexEntry(BaseModel):
    """Keyword index record for a packet, ADR or journal entry."""

    id: str
    type: CandidateType
    keywords: list[str] = Field(default_factory=list)
    paths: list[str] = Field(default_factory=list)
    symbols: list[str] = Field(default_factory=list)
    timestamp: Optional[datetime] = None
    status: Optional[str] = None


class ContextIndex(BaseModel):
    """Persisted keyword index over the document store."""

    version: str = "2.0.0"
    built_at: datetime = Field(default_factory=utc_now)
    entries: list[IndexEntry] = Field(default_factory=list)
    symbol_map: dict[str, list[str]] = Field(default_factory=dict)
    path_map: dict[str, list[str]] = Field(default_factory=dict)


# === Config ===

class ProjectConfig(BaseModel):
    name: str = ""
    description: str = ""


class ContextConfig(BaseModel):
    """Configuration for Context Engine."""

    version: str = "2.0.0"
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    relevance: RelevanceConfig = Field(default_factory=RelevanceConfig)
    command_logging: bool = True  # Log command invocations to .ce-logs/
    tokenizer_model: str = "gpt-4"


class CurrentContext(BaseModel):
    """Packet selected with `ce switch`."""

    packet_id: Optional[str] = None
    switched_at: Optional[datetime] = None


class QueryResult(BaseModel):
    """One search hit over packets, ADRs, journal entries or the repo map."""

    id: str
    type: QueryType
    title: str
    path: str
    snippet: str = ""
    score: float
    matches: list[str] = Field(default_factory=list)
