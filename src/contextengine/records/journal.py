"""Journal of commits recorded against packets.

Journal files live under ``context/journal/<YYYY>/<MM>-<month>.md`` and hold
one ``## [timestamp]`` block per entry::

    ## [2026-10-01T12:00:00+00:00]

    **Packet:** FEAT-001
    **Commit:** 1a2b3c4d

    ### Changed Files
    - src/auth.ts

    ### Summary
    Added the OAuth callback handler.

    ---
"""
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from ..config import JOURNAL_DIR
from ..logging import log_event
from ..models import JournalEntry


_BLOCK_START = re.compile(r"^## ", re.MULTILINE)
_HEADER_TIMESTAMP = re.compile(r"\[(.*?)\]")

SEPARATOR = "---"

_SECTIONS = {
    "### Changed Files": "files",
    "### Summary": "summary",
    "### Risks": "risks",
    "### Next Steps": "next",
}

# Summary lines starting with these would be read back as block structure
_ESCAPED_PREFIXES = ("\\", "#", "**")


def journal_path(moment: datetime, root: Path) -> Path:
    """Monthly journal file for a point in time."""
    month_name = moment.strftime("%B").lower()
    return root / JOURNAL_DIR / f"{moment.year:04d}" / f"{moment.month:02d}-{month_name}.md"


def journal_entry_id(entry: JournalEntry) -> str:
    """Stable candidate/index id of a journal entry."""
    return f"journal-{entry.commit_sha[:8]}"


def parse_timestamp(raw: str) -> Optional[datetime]:
    """ISO-8601 timestamp, naive values taken as UTC; None if unparsable."""
    try:
        moment = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _escape_summary_line(line: str) -> str:
    """Backslash-escape a summary line that looks like a heading, field or separator."""
    stripped = line.strip()
    if stripped.startswith(_ESCAPED_PREFIXES) or stripped == SEPARATOR:
        return "\\" + stripped
    return line


def _unescape_summary_line(line: str) -> str:
    return line[1:] if line.startswith("\\") else line


def _parse_block(block: str) -> Optional[JournalEntry]:
    lines = block.split("\n")
    header = _HEADER_TIMESTAMP.search(lines[0])
    timestamp = parse_timestamp(header.group(1)) if header else None
    if timestamp is None:
        return None

    packet_id = ""
    commit_sha = ""
    files: list[str] = []
    summary: list[str] = []
    risks: list[str] = []
    next_steps: list[str] = []
    section = ""

    for line in lines[1:]:
        stripped = line.strip()
        if line.startswith("**Packet:**"):
            packet_id = line[len("**Packet:**"):].strip()
        elif line.startswith("**Commit:**"):
            commit_sha = line[len("**Commit:**"):].strip()
        elif stripped in _SECTIONS:
            section = _SECTIONS[stripped]
        elif stripped == SEPARATOR:
            section = ""
        elif line.startswith("- ") and section in ("files", "risks", "next"):
            item = line[2:].strip()
            {"files": files, "risks": risks, "next": next_steps}[section].append(item)
        elif section == "summary" and stripped:
            summary.append(_unescape_summary_line(stripped))

    if not packet_id or not commit_sha:
        return None

    return JournalEntry(
        packet_id=packet_id,
        commit_sha=commit_sha,
        changed_files=files,
        summary=" ".join(summary),
        risks=risks,
        next_steps=next_steps,
        timestamp=timestamp,
    )


def parse_journal_entries(content: str) -> list[JournalEntry]:
    """Entries of one journal file in file order.

    Blocks without a parsable timestamp, packet id or commit are skipped.
    """
    entries: list[JournalEntry] = []
    for block in _BLOCK_START.split(content):
        if not block.strip():
            continue
        entry = _parse_block(block)
        if entry is not None:
            entries.append(entry)
    return entries


def journal_files(root: Path) -> list[Path]:
    journal_dir = root / JOURNAL_DIR
    if not journal_dir.is_dir():
        return []
    return sorted(journal_dir.rglob("*.md"))


def load_journal_entries(
    root: Path,
    window_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[JournalEntry]:
    """All journal entries, optionally only those within the last window_days.

    Unreadable files are skipped with a ``journal_skipped`` event.
    """
    cutoff = None
    if window_days is not None:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=window_days)

    entries: list[JournalEntry] = []
    for path in journal_files(root):
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log_event("journal_skipped", {"path": str(path.relative_to(root)), "error": str(e)}, root)
            continue

        for entry in parse_journal_entries(content):
            if cutoff is None or entry.timestamp >= cutoff:
                entries.append(entry)

    return entries


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_journal_entry(entry: JournalEntry) -> str:
    """Render an entry as a journal block, trailing separator included."""
    parts = [
        f"## [{entry.timestamp.isoformat()}]",
        "",
        f"**Packet:** {entry.packet_id}",
        f"**Commit:** {entry.commit_sha}",
        "",
        "### Changed Files",
        _bullets(entry.changed_files),
        "",
        "### Summary",
        "\n".join(_escape_summary_line(line) for line in entry.summary.split("\n")),
    ]
    if entry.risks:
        parts += ["", "### Risks", _bullets(entry.risks)]
    if entry.next_steps:
        parts += ["", "### Next Steps", _bullets(entry.next_steps)]
    parts += ["", SEPARATOR, "", ""]
    return "\n".join(parts)


def append_journal_entry(entry: JournalEntry, root: Path) -> Path:
    """Append an entry to its month's journal file, creating it if needed."""
    path = journal_path(entry.timestamp, root)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists():
        existing = path.read_text(encoding="utf-8")
    else:
        existing = f"# Journal - {entry.timestamp.strftime('%B %Y')}\n\n{SEPARATOR}\n\n"

    path.write_text(existing + format_journal_entry(entry), encoding="utf-8")
    return path
