"""Decision records and journal entries consumed as context candidates."""
from .adrs import adr_path, get_adr, load_adr_files, load_adrs, read_adr, save_adr
from .journal import (
    append_journal_entry,
    format_journal_entry,
    journal_entry_id,
    journal_path,
    load_journal_entries,
    parse_journal_entries,
)

__all__ = [
    "adr_path",
    "get_adr",
    "load_adr_files",
    "load_adrs",
    "read_adr",
    "save_adr",
    "append_journal_entry",
    "format_journal_entry",
    "journal_entry_id",
    "journal_path",
    "load_journal_entries",
    "parse_journal_entries",
]
