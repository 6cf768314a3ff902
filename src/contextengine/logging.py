"""Command and event logging for Context Engine."""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Log file location (outside context/ so it never gets committed with packets)
CE_LOGS_DIR = ".ce-logs"
COMMAND_LOG_FILE = "commands.log"
MAX_LOG_SIZE_MB = 10

EVENT_PREFIX = "EVENT:"


def get_logs_path(base_path: Optional[Path] = None) -> Path:
    """Get the .ce-logs directory path.

    Args:
        base_path: Base path for logs. Defaults to cwd.

    Returns:
        Path to .ce-logs directory.
    """
    if base_path is None:
        base_path = Path.cwd()
    return base_path / CE_LOGS_DIR


def is_logging_enabled(base_path: Optional[Path] = None) -> bool:
    """Check if logging is enabled via config.

    Args:
        base_path: Project root. Defaults to cwd.

    Returns:
        True if logging is enabled, False otherwise.
    """
    from .storage import read_json
    from .config import CONFIG_FILE

    if base_path is None:
        base_path = Path.cwd()

    config_file = base_path / CONFIG_FILE

    if not config_file.exists():
        # Nothing to log into before init
        return False

    try:
        config = read_json(config_file)
        return config.get("command_logging", True)
    except Exception:
        return True


def _append_line(base_path: Optional[Path], entry: str) -> None:
    logs_path = get_logs_path(base_path)
    log_file = logs_path / COMMAND_LOG_FILE

    # Create directory on first write
    logs_path.mkdir(parents=True, exist_ok=True)

    # Check log rotation (simple size-based)
    if log_file.exists():
        size_mb = log_file.stat().st_size / (1024 * 1024)
        if size_mb > MAX_LOG_SIZE_MB:
            # Rotate: keep .1 backup
            backup = logs_path / f"{COMMAND_LOG_FILE}.1"
            if backup.exists():
                backup.unlink()
            log_file.rename(backup)

    with log_file.open("a", encoding="utf-8") as f:
        f.write(entry)


def log_command(command: str, args: list[str], base_path: Optional[Path] = None) -> None:
    """Log a command invocation.

    Args:
        command: The command name (e.g., "anchor check").
        args: Command arguments.
        base_path: Project root. Defaults to cwd.
    """
    if not is_logging_enabled(base_path):
        return

    timestamp = datetime.now().isoformat()
    args_str = " ".join(f'"{a}"' if " " in a else a for a in args)
    _append_line(base_path, f"{timestamp} | {command} | {args_str}\n")


def log_event(
    event: str, metadata: Optional[dict] = None, base_path: Optional[Path] = None
) -> None:
    """Log a library event such as a skipped document or a refreshed anchor.

    Never raises: a failing log write must not fail the operation being logged.

    Args:
        event: Event name without prefix (e.g., "adr_skipped").
        metadata: Optional metadata dict.
        base_path: Project root. Defaults to cwd.
    """
    try:
        if not is_logging_enabled(base_path):
            return
        timestamp = datetime.now().isoformat()
        meta_str = json.dumps(metadata, default=str) if metadata else "{}"
        _append_line(base_path, f"{timestamp} | {EVENT_PREFIX}{event} | {meta_str}\n")
    except OSError:
        pass


def log_from_cli() -> None:
    """Log the current CLI invocation.

    Call this from the CLI callback to capture all ce commands.
    """
    if len(sys.argv) < 2:
        return

    # sys.argv[0] is "ce", rest are command and args
    args = sys.argv[1:]

    command_parts = []
    remaining_args = []
    in_command = True

    for arg in args:
        if in_command:
            if arg.startswith("-"):
                in_command = False
                remaining_args.append(arg)
            else:
                command_parts.append(arg)
                # Most commands are two words (e.g., "anchor check")
                if len(command_parts) == 2:
                    in_command = False
        else:
            remaining_args.append(arg)

    command = " ".join(command_parts) if command_parts else "unknown"

    from .config import find_project_root
    log_command(command, remaining_args, find_project_root())


def parse_log_file(base_path: Optional[Path] = None) -> list[dict]:
    """Parse the log file into structured entries.

    Args:
        base_path: Project root. Defaults to cwd.

    Returns:
        List of log entries as dicts with keys: timestamp, command, args, is_event.
    """
    log_file = get_logs_path(base_path) / COMMAND_LOG_FILE

    if not log_file.exists():
        return []

    entries = []
    with log_file.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue

            parts = line.split(" | ", 2)
            if len(parts) >= 2:
                entries.append({
                    "timestamp": parts[0],
                    "command": parts[1],
                    "args": parts[2] if len(parts) > 2 else "",
                    "is_event": parts[1].startswith(EVENT_PREFIX),
                })

    return entries
