"""Tests for the commit journal."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from contextengine.models import JournalEntry
from contextengine.records import (
    append_journal_entry,
    format_journal_entry,
    journal_entry_id,
    journal_path,
    load_journal_entries,
    parse_journal_entries,
)
from contextengine.records.journal import parse_timestamp


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

SAMPLE = """# Journal - March 2026

---

## [2026-03-01T09:30:00+00:00]

**Packet:** FEAT-001
**Commit:** 1a2b3c4d

### Changed Files
- src/auth.ts
- src/routes.ts

### Summary
Added the OAuth callback
and wired the route.

### Risks
- Token refresh untested

---

## [not a date]

**Packet:** FEAT-002
**Commit:** ffff0000

---

## [2026-03-01T10:00:00]

**Packet:** BUG-003

---
"""


def _entry(**overrides) -> JournalEntry:
    fields = dict(
        packet_id="FEAT-001",
        commit_sha="1a2b3c4d5e6f",
        changed_files=["src/auth.ts"],
        summary="Added the OAuth callback",
        timestamp=NOW,
    )
    fields.update(overrides)
    return JournalEntry(**fields)


class TestParse:
    """Tests for reading journal blocks."""

    def test_parse_sample(self) -> None:
        """Test only complete, well-dated blocks are returned."""
        entries = parse_journal_entries(SAMPLE)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.packet_id == "FEAT-001"
        assert entry.commit_sha == "1a2b3c4d"
        assert entry.changed_files == ["src/auth.ts", "src/routes.ts"]
        assert entry.summary == "Added the OAuth callback and wired the route."
        assert entry.risks == ["Token refresh untested"]
        assert entry.next_steps == []
        assert entry.timestamp == datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)

    def test_empty_file(self) -> None:
        assert parse_journal_entries("") == []

    def test_naive_timestamp_is_utc(self) -> None:
        assert parse_timestamp("2026-03-01T10:00:00") == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_bad_timestamp(self) -> None:
        assert parse_timestamp("yesterday") is None


class TestFormat:
    """Tests for writing journal blocks."""

    def test_format_parses_back(self) -> None:
        """Test a formatted entry reads back unchanged."""
        entry = _entry(risks=["Flaky provider"], next_steps=["Add retries"])

        assert parse_journal_entries(format_journal_entry(entry)) == [entry]

    def test_heading_like_summary_survives(self) -> None:
        """Test summaries that look like block structure read back intact."""
        for summary in ("## heading-like summary", "---", "### Risks", "**Packet:** BUG-009", "\\ leading backslash"):
            entry = _entry(summary=summary)

            assert parse_journal_entries(format_journal_entry(entry)) == [entry]

    def test_heading_like_summary_does_not_split_file(self) -> None:
        """Test an escaped summary keeps neighbouring entries separate."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            append_journal_entry(_entry(summary="## not a new block"), root)
            append_journal_entry(_entry(commit_sha="bbbb1111", summary="Second"), root)

            entries = load_journal_entries(root)

            assert [e.summary for e in entries] == ["## not a new block", "Second"]

    def test_optional_sections_omitted(self) -> None:
        text = format_journal_entry(_entry())

        assert "### Risks" not in text
        assert "### Next Steps" not in text
        assert text.rstrip().endswith("---")

    def test_entry_id(self) -> None:
        assert journal_entry_id(_entry()) == "journal-1a2b3c4d"


class TestAppendAndLoad:
    """Tests for journal files on disk."""

    def test_monthly_path(self) -> None:
        path = journal_path(NOW, Path("/repo"))

        assert path == Path("/repo/context/journal/2026/03-march.md")

    def test_append_creates_header(self) -> None:
        """Test the first entry of a month creates the file with a title."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            path = append_journal_entry(_entry(), root)
            append_journal_entry(_entry(commit_sha="bbbb1111", summary="Second"), root)

            text = path.read_text()
            assert text.startswith("# Journal - March 2026\n")
            assert text.count("# Journal") == 1
            assert [e.summary for e in load_journal_entries(root)] == [
                "Added the OAuth callback", "Second",
            ]

    def test_window(self) -> None:
        """Test the window keeps only recent entries, across months."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            append_journal_entry(_entry(commit_sha="old00000", timestamp=NOW - timedelta(days=40)), root)
            append_journal_entry(_entry(commit_sha="mid00000", timestamp=NOW - timedelta(days=10)), root)
            append_journal_entry(_entry(commit_sha="new00000", timestamp=NOW), root)

            recent = load_journal_entries(root, window_days=30, now=NOW)
            everything = load_journal_entries(root)

            assert [e.commit_sha for e in recent] == ["mid00000", "new00000"]
            assert len(everything) == 3

    def test_no_journal(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert load_journal_entries(Path(tmpdir)) == []
