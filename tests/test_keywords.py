"""Tests for keyword extraction."""

from datetime import datetime, timezone

from contextengine.models import Candidate, Packet, SemanticAnchor
from contextengine.retrieval.keywords import (
    candidate_keywords,
    extract_keywords,
    keywords_from,
    packet_keywords,
    split_identifier,
)


def _anchor(path: str, symbol: str) -> SemanticAnchor:
    return SemanticAnchor(
        path=path,
        symbol=symbol,
        language="ts",
        symbol_type="function",
        semantic_hash="sha256:" + "0" * 64,
        git_ref="abc123",
        captured_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class TestSplitIdentifier:
    """Tests for compound identifier splitting."""

    def test_camel_case(self) -> None:
        """Test camelCase splits into sub-words plus the whole identifier."""
        assert split_identifier("handleOAuthCallback") == [
            "handle", "auth", "callback", "handleoauthcallback",
        ]

    def test_acronym_run(self) -> None:
        """Test a run of capitals stays together before the next word."""
        assert split_identifier("parseHTTPResponse") == [
            "parse", "http", "response", "parsehttpresponse",
        ]

    def test_separators(self) -> None:
        """Test underscores and hyphens split words."""
        assert split_identifier("user_id-map") == ["user", "map", "user_id-map"]

    def test_short_identifier_dropped(self) -> None:
        """Test identifiers under three characters yield nothing."""
        assert split_identifier("id") == []

    def test_stopword_dropped(self) -> None:
        """Test stopwords are removed even as whole identifiers."""
        assert split_identifier("index") == []


class TestExtractKeywords:
    """Tests for free-text keyword extraction."""

    def test_sentence(self) -> None:
        """Test punctuation, stopwords and short words are removed."""
        keywords = extract_keywords("Decided to use OAuth for authentication.")

        assert keywords == {"decided", "oauth", "auth", "authentication"}

    def test_empty(self) -> None:
        """Test empty text yields no keywords."""
        assert extract_keywords("") == set()

    def test_whole_and_parts_searchable(self) -> None:
        """Test both decomposed and whole identifiers are kept."""
        keywords = extract_keywords("call validateToken()")

        assert {"validate", "token", "validatetoken", "call"} <= keywords

    def test_keywords_from_unions_sources(self) -> None:
        """Test keywords_from merges several texts."""
        assert keywords_from(["login page", "logout button"]) == {
            "login", "page", "logout", "button",
        }


class TestPacketKeywords:
    """Tests for packet keyword collection."""

    def test_includes_anchor_symbols_and_path_segments(self) -> None:
        """Test anchors contribute their symbol and each path segment."""
        packet = Packet(
            id="FEAT-001",
            type="feat",
            title="OAuth Login Feature",
            goal="Implement OAuth authentication",
            dod=["Tokens refreshed"],
            constraints=["No cookies"],
            repo_truth=[_anchor("server/auth/oauth.ts", "handleOAuthCallback")],
        )

        keywords = packet_keywords(packet)

        assert {"login", "feature", "implement", "tokens", "refreshed", "cookies"} <= keywords
        assert {"handleoauthcallback", "callback", "server"} <= keywords
        assert "oauth" in keywords


class TestCandidateKeywords:
    """Tests for candidate keyword collection."""

    def test_precomputed_keywords_win(self) -> None:
        """Test a candidate's own keyword list is used as-is."""
        candidate = Candidate(id="ADR-0001", type="adr", text="ignored text", keywords=["alpha"])

        assert candidate_keywords(candidate) == {"alpha"}

    def test_extracted_from_fields(self) -> None:
        """Test text, title, paths and symbols are all consulted."""
        candidate = Candidate(
            id="ADR-0001",
            type="adr",
            title="Session storage",
            text="Use redis",
            paths=["server/cache"],
            symbols=["getSession"],
        )

        keywords = candidate_keywords(candidate)

        assert {"session", "storage", "redis", "server", "cache", "getsession"} <= keywords
