"""Tests for Pydantic models."""

import json
import pytest
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from pydantic import ValidationError
from contextengine.config import CONFIG_FILE, load_config, save_config
from contextengine.errors import ConfigInvalid, NotInitialized
from contextengine.models import (
    ContextConfig,
    Packet,
    PacketStatus,
    RelevanceConfig,
    SemanticAnchor,
    VALID_STATUS_TRANSITIONS,
)


class TestSemanticAnchor:
    """Tests for anchor validation."""

    def _fields(self, **overrides) -> dict:
        fields = dict(
            path="src/auth.ts",
            symbol="login",
            language="ts",
            symbol_type="function",
            semantic_hash="sha256:" + "0" * 64,
            git_ref="abc123",
            captured_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return fields

    def test_valid(self) -> None:
        anchor = SemanticAnchor(**self._fields())

        assert anchor.anchor_type == "semantic_hash"
        assert anchor.signature is None

    def test_hash_format_enforced(self) -> None:
        """Test hashes must be sha256:<64 lowercase hex>."""
        with pytest.raises(ValidationError):
            SemanticAnchor(**self._fields(semantic_hash="md5:abc"))
        with pytest.raises(ValidationError):
            SemanticAnchor(**self._fields(semantic_hash="sha256:" + "A" * 64))

    def test_unknown_language(self) -> None:
        with pytest.raises(ValidationError):
            SemanticAnchor(**self._fields(language="rust"))

    def test_lines_are_one_based(self) -> None:
        with pytest.raises(ValidationError):
            SemanticAnchor(**self._fields(line_start=0))

    def test_empty_path_rejected(self) -> None:
        """Test an anchor must point at a file."""
        with pytest.raises(ValidationError):
            SemanticAnchor(**self._fields(path=""))


class TestPacket:
    """Tests for packet validation."""

    def test_defaults(self) -> None:
        packet = Packet(id="FEAT-001", type="feat", title="T", goal="G", dod=["D"])

        assert packet.status == PacketStatus.DRAFT
        assert packet.repo_truth == []
        assert packet.metadata.related_adrs == []

    def test_id_format(self) -> None:
        with pytest.raises(ValidationError):
            Packet(id="feature-1", type="feat", title="T", goal="G", dod=["D"])

    def test_dod_required(self) -> None:
        """Test a packet needs at least one definition-of-done item."""
        with pytest.raises(ValidationError):
            Packet(id="FEAT-001", type="feat", title="T", goal="G", dod=[])

    def test_transitions_cover_every_status(self) -> None:
        assert set(VALID_STATUS_TRANSITIONS) == set(PacketStatus)


class TestConfig:
    """Tests for configuration defaults."""

    def test_relevance_defaults(self) -> None:
        config = RelevanceConfig()

        assert config.journal_window_days == 30
        assert config.max_candidates == 200
        assert config.min_score == 0.05
        assert config.boosts.symbol_match == 0.3
        assert config.boosts.path_overlap == 0.2
        assert config.boosts.explicit_link == 0.5
        assert config.recency.journal_max == 0.2
        assert config.recency.decay_per_day == 0.002
        assert config.budget_stop_ratio == 0.95

    def test_partial_config(self) -> None:
        """Test a partial config file fills in the remaining defaults."""
        config = ContextConfig.model_validate({"relevance": {"min_score": 0.2}})

        assert config.relevance.min_score == 0.2
        assert config.relevance.max_candidates == 200
        assert config.tokenizer_model == "gpt-4"

    def test_stop_ratio_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RelevanceConfig(budget_stop_ratio=1.5)


class TestLoadConfig:
    """Tests for reading the project config file."""

    def _write_config(self, root: Path, text: str) -> None:
        path = root / CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    def test_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            save_config(ContextConfig(), root)

            assert load_config(root) == ContextConfig()

    def test_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(NotInitialized):
                load_config(Path(tmpdir))

    def test_not_json(self) -> None:
        """Test a config file that is not JSON is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            self._write_config(root, "{relevance: nope")

            with pytest.raises(ConfigInvalid):
                load_config(root)

    def test_invalid_relevance(self) -> None:
        """Test a relevance section with the wrong types is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            self._write_config(root, json.dumps({"relevance": {"max_candidates": "lots"}}))

            with pytest.raises(ConfigInvalid, match="max_candidates"):
                load_config(root)
