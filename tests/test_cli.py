"""Tests for the Context Engine CLI."""

import pytest
from pathlib import Path
import tempfile
from typer.testing import CliRunner
from contextengine.cli import app
from contextengine.config import (
    CONFIG_FILE,
    CURRENT_CONTEXT_FILE,
    INDEX_FILE,
    PACKETS_ACTIVE_DIR,
    REPO_MAP_FILE,
)


runner = CliRunner()

AUTH_SOURCE = """export function handleOAuthCallback(code: string) {
  return exchange(code);
}
"""


class WordTokenizer:
    """Counts whitespace-separated words."""

    def count(self, text: str) -> int:
        return len(text.split())


@pytest.fixture
def project(monkeypatch):
    """Initialized project with a source file and one packet."""
    monkeypatch.setattr(
        "contextengine.retrieval.assembler.default_tokenizer",
        lambda model="gpt-4": WordTokenizer(),
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "src").mkdir()
        (root / "src" / "auth.ts").write_text(AUTH_SOURCE)

        runner.invoke(app, ["init", tmpdir])
        runner.invoke(app, [
            "packet", "create", "feat", "OAuth login",
            "--goal", "Implement OAuth", "--dod", "Login works", "--base", tmpdir,
        ])
        yield root


def _invoke(root: Path, *args: str):
    return runner.invoke(app, [*args, "--base", str(root)])


class TestInitCommand:
    """Tests for the init command."""

    def test_init_creates_directory_structure(self) -> None:
        """Test that init creates the document store."""
        with tempfile.TemporaryDirectory() as tmpdir:
            result = runner.invoke(app, ["init", tmpdir, "--name", "demo"])

            assert result.exit_code == 0
            assert "Initialized Context Engine" in result.stdout

            root = Path(tmpdir)
            assert (root / CONFIG_FILE).exists()
            assert (root / INDEX_FILE).exists()
            assert (root / PACKETS_ACTIVE_DIR).is_dir()
            assert (root / "context" / "adrs").is_dir()
            assert '"name": "demo"' in (root / CONFIG_FILE).read_text()

    def test_init_updates_gitignore(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            runner.invoke(app, ["init", tmpdir])

            gitignore = (Path(tmpdir) / ".gitignore").read_text()
            assert ".context-engine/" in gitignore
            assert ".ce-logs/" in gitignore

    def test_init_fails_if_already_exists(self) -> None:
        """Test that init fails if already initialized."""
        with tempfile.TemporaryDirectory() as tmpdir:
            runner.invoke(app, ["init", tmpdir])

            result = runner.invoke(app, ["init", tmpdir])

            assert result.exit_code == 1
            assert "already initialized" in result.stdout

    def test_init_force_reinitializes(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            runner.invoke(app, ["init", tmpdir])

            result = runner.invoke(app, ["init", tmpdir, "--force"])

            assert result.exit_code == 0

    def test_commands_require_init(self) -> None:
        """Test commands fail cleanly before init."""
        with tempfile.TemporaryDirectory() as tmpdir:
            result = runner.invoke(app, ["packet", "list", "--base", tmpdir])

            assert result.exit_code == 1
            assert "not initialized" in result.output


class TestPacketCommands:
    """Tests for packet commands."""

    def test_create_and_list(self, project) -> None:
        result = _invoke(project, "packet", "list")

        assert result.exit_code == 0
        assert "Packets (1):" in result.stdout
        assert "FEAT-001: OAuth login (draft)" in result.stdout

    def test_create_prints_id(self, project) -> None:
        result = _invoke(
            project, "packet", "create", "bug", "Crash on logout",
            "--goal", "Stop the crash", "--dod", "No crash", "--dod", "Test added",
        )

        assert result.exit_code == 0
        assert "Created packet: BUG-001" in result.stdout

    def test_show(self, project) -> None:
        result = _invoke(project, "packet", "show", "FEAT-001")

        assert result.exit_code == 0
        assert "Goal: Implement OAuth" in result.stdout
        assert "  - Login works" in result.stdout

    def test_status_transition(self, project) -> None:
        result = _invoke(project, "packet", "status", "FEAT-001", "active")

        assert result.exit_code == 0
        assert "status changed to active" in result.stdout

    def test_invalid_status_transition(self, project) -> None:
        result = _invoke(project, "packet", "status", "FEAT-001", "completed")

        assert result.exit_code == 1
        assert "Invalid status transition" in result.output

    def test_list_empty_filter(self, project) -> None:
        result = _invoke(project, "packet", "list", "--status", "blocked")

        assert "No packets found." in result.stdout

    def test_link_adr(self, project) -> None:
        result = _invoke(project, "packet", "link-adr", "FEAT-001", "ADR-0001")

        assert result.exit_code == 0
        assert "Linked ADR-0001 to FEAT-001" in result.stdout


class TestSwitchAndAssemble:
    """Tests for switching packets and assembling context."""

    def test_switch(self, project) -> None:
        result = _invoke(project, "switch", "FEAT-001")

        assert result.exit_code == 0
        assert "✓ Switched to: FEAT-001" in result.stdout
        assert (project / CURRENT_CONTEXT_FILE).exists()

    def test_switch_unknown(self, project) -> None:
        result = _invoke(project, "switch", "FEAT-404")

        assert result.exit_code == 1
        assert "Packet not found: FEAT-404" in result.output

    def test_assemble_current_packet(self, project) -> None:
        """Test assemble defaults to the switched packet."""
        _invoke(project, "switch", "FEAT-001")

        result = _invoke(project, "assemble")

        assert result.exit_code == 0
        assert "# Context Pack: FEAT-001" in result.stdout
        assert "## Rules for Agent" in result.stdout

    def test_assemble_without_current_packet(self, project) -> None:
        result = _invoke(project, "assemble")

        assert result.exit_code == 1
        assert "no current packet" in result.output

    def test_assemble_to_file(self, project) -> None:
        out = project / "pack.md"

        result = _invoke(project, "assemble", "FEAT-001", "--out", str(out))

        assert result.exit_code == 0
        assert "Context pack written to" in result.stdout
        assert out.read_text().startswith("# Context Pack: FEAT-001")

    def test_assemble_budget_minimum(self, project) -> None:
        """Test budgets below 1000 tokens are rejected."""
        result = _invoke(project, "assemble", "FEAT-001", "--max-tokens", "500")

        assert result.exit_code == 2


class TestAnchorCommands:
    """Tests for anchor commands."""

    def test_symbols(self, project) -> None:
        result = _invoke(project, "anchor", "symbols", "src/auth.ts")

        assert result.exit_code == 0
        assert "handleOAuthCallback" in result.stdout

    def test_add_and_check(self, project) -> None:
        """Test a fresh anchor checks clean."""
        added = _invoke(project, "anchor", "add", "FEAT-001", "src/auth.ts", "handleOAuthCallback")
        checked = _invoke(project, "anchor", "check", "FEAT-001")

        assert added.exit_code == 0
        assert "✓ Added anchor: handleOAuthCallback (src/auth.ts)" in added.stdout
        assert checked.exit_code == 0
        assert "1/1 anchors valid" in checked.stdout

    def test_add_unknown_symbol(self, project) -> None:
        result = _invoke(project, "anchor", "add", "FEAT-001", "src/auth.ts", "missing")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_drift_then_refresh(self, project) -> None:
        """Test drift fails the check until the anchor is refreshed."""
        _invoke(project, "anchor", "add", "FEAT-001", "src/auth.ts", "handleOAuthCallback")
        (project / "src" / "auth.ts").write_text(AUTH_SOURCE.replace("exchange(code)", "exchange(code, 1)"))

        drifted = _invoke(project, "anchor", "check", "FEAT-001")
        refreshed = _invoke(project, "anchor", "refresh", "FEAT-001", "--yes")
        checked = _invoke(project, "anchor", "check", "FEAT-001")

        assert drifted.exit_code == 1
        assert "0/1 anchors valid" in drifted.stdout
        assert refreshed.exit_code == 0
        assert "✓ Refreshed 1 anchor(s)" in refreshed.stdout
        assert checked.exit_code == 0

    def test_refresh_nothing_to_do(self, project) -> None:
        _invoke(project, "anchor", "add", "FEAT-001", "src/auth.ts", "handleOAuthCallback")

        result = _invoke(project, "anchor", "refresh", "FEAT-001", "--yes")

        assert result.exit_code == 0
        assert "No drifted anchors to refresh." in result.stdout

    def test_deleted_file_fails_check(self, project) -> None:
        _invoke(project, "anchor", "add", "FEAT-001", "src/auth.ts", "handleOAuthCallback")
        (project / "src" / "auth.ts").unlink()

        result = _invoke(project, "anchor", "check", "FEAT-001")

        assert result.exit_code == 1
        assert "✗ handleOAuthCallback" in result.stdout


class TestJournalIndexQuery:
    """Tests for journal, index and query commands."""

    def test_journal_add_and_list(self, project) -> None:
        added = _invoke(
            project, "journal", "add", "Wired the OAuth callback",
            "--packet", "FEAT-001", "--file", "src/auth.ts", "--commit", "1a2b3c4d5e",
        )
        listed = _invoke(project, "journal", "list")

        assert added.exit_code == 0
        assert "✓ Journal entry added" in added.stdout
        assert "FEAT-001 1a2b3c4d  Wired the OAuth callback" in listed.stdout

    def test_index_and_query(self, project) -> None:
        _invoke(project, "journal", "add", "Wired the OAuth callback", "--packet", "FEAT-001", "--commit", "abc")

        indexed = _invoke(project, "index")
        found = _invoke(project, "query", "oauth callback")

        assert indexed.exit_code == 0
        assert "✓ Indexed 2 entries" in indexed.stdout
        assert found.exit_code == 0
        assert "[journal] journal-abc" in found.stdout

    def test_query_no_results(self, project) -> None:
        result = _invoke(project, "query", "kubernetes")

        assert "No results found." in result.stdout

    def test_query_unknown_type(self, project) -> None:
        result = _invoke(project, "query", "oauth", "--type", "wiki")

        assert result.exit_code == 1


class TestHealthAndLogs:
    """Tests for health and log commands."""

    def test_health_fail_on_orphan(self, project) -> None:
        """Test an active packet without anchors fails the health check."""
        _invoke(project, "packet", "status", "FEAT-001", "active")

        result = _invoke(project, "health", "--plain", "--fail")

        assert result.exit_code == 1
        assert "FEAT-001 has no semantic anchors" in result.stdout

    def test_health_clean(self, project) -> None:
        result = _invoke(project, "health", "--plain", "--fail")

        assert result.exit_code == 0
        assert "✓ All checks passed!" in result.stdout

    def test_logs_show_events(self, project) -> None:
        """Test library events reach the log."""
        _invoke(project, "journal", "add", "Did a thing", "--packet", "FEAT-001", "--commit", "abc")

        result = _invoke(project, "logs", "show", "--events")

        assert result.exit_code == 0
        assert "journal_added" in result.stdout

    def test_logs_clear(self, project) -> None:
        _invoke(project, "journal", "add", "Did a thing", "--packet", "FEAT-001", "--commit", "abc")

        result = _invoke(project, "logs", "clear", "--force")

        assert "Log file cleared." in result.stdout
        assert not (project / ".ce-logs" / "commands.log").exists()


class TestRepoMap:
    """Tests for the repository map."""

    def test_init_writes_repo_map(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            result = runner.invoke(app, ["init", tmpdir, "--description", "Billing service"])

            repo_map = Path(tmpdir) / REPO_MAP_FILE
            assert "Repo map: context/repo-map/REPO_MAP.md" in result.stdout
            assert repo_map.read_text().startswith("# Repository Map\n\n## Overview\nBilling service\n")

    def test_force_keeps_edited_repo_map(self) -> None:
        """Test reinitializing does not overwrite an edited repo map."""
        with tempfile.TemporaryDirectory() as tmpdir:
            runner.invoke(app, ["init", tmpdir])
            repo_map = Path(tmpdir) / REPO_MAP_FILE
            repo_map.write_text("# Repository Map\n\nHand written.\n")

            runner.invoke(app, ["init", tmpdir, "--force"])

            assert repo_map.read_text() == "# Repository Map\n\nHand written.\n"

    def test_query_repo_map(self, project) -> None:
        result = _invoke(project, "query", "key directories", "--type", "repo-map")

        assert result.exit_code == 0
        assert "[repo-map] repo-map: Repository Map (score: 0.40)" in result.stdout

    def test_health_warns_when_missing(self, project) -> None:
        (project / REPO_MAP_FILE).unlink()

        result = _invoke(project, "health", "--plain", "--fail")

        assert result.exit_code == 1
        assert "⚠ REPO_MAP.md is missing" in result.stdout


class TestErrorReporting:
    """Tests for failures reported as errors rather than tracebacks."""

    def test_invalid_config(self, project) -> None:
        """Test a malformed config fails assemble cleanly."""
        (project / CONFIG_FILE).write_text('{"relevance": {"max_candidates": "lots"}}')

        result = _invoke(project, "assemble", "FEAT-001")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "max_candidates" in result.output

    def test_config_not_json(self, project) -> None:
        (project / CONFIG_FILE).write_text("{not json")

        result = _invoke(project, "assemble", "FEAT-001")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_symbols_in_undecodable_file(self, project) -> None:
        """Test a file that is not UTF-8 is reported as an error."""
        (project / "src" / "binary.ts").write_bytes(b"\xff\xfe\x00")

        result = _invoke(project, "anchor", "symbols", "src/binary.ts")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)
