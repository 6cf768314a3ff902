"""Configuration and environment loading for Context Engine."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import json
import os

from pydantic import ValidationError

from .errors import ConfigInvalid, NotFound, NotInitialized
from .models import ContextConfig, CurrentContext

# Try to load dotenv if available
try:
    from dotenv import load_dotenv
    HAS_DOTENV = True
except ImportError:
    HAS_DOTENV = False


def load_env() -> bool:
    """Load environment variables from .env file.

    Returns:
        True if .env file was found and loaded, False otherwise.
    """
    if not HAS_DOTENV:
        return False

    if Path(".env").exists():
        load_dotenv()
        return True

    return False


# Context Engine layout constants
CONTEXT_DIR = "context"
CE_DIR = ".context-engine"
CONFIG_FILE = Path(CONTEXT_DIR) / "config" / "context.config.json"
PACKETS_ACTIVE_DIR = Path(CONTEXT_DIR) / "packets" / "active"
PACKETS_COMPLETED_DIR = Path(CONTEXT_DIR) / "packets" / "completed"
ADRS_DIR = Path(CONTEXT_DIR) / "adrs"
JOURNAL_DIR = Path(CONTEXT_DIR) / "journal"
INDEX_FILE = Path(CONTEXT_DIR) / ".index" / "index.json"
REPO_MAP_FILE = Path(CONTEXT_DIR) / "repo-map" / "REPO_MAP.md"
CURRENT_CONTEXT_FILE = Path(CE_DIR) / "current-context.json"

# Tokens held back from the assembly budget after the fixed sections
SAFETY_RESERVE_TOKENS = 200
DEFAULT_MAX_TOKENS = 8000
MIN_MAX_TOKENS = 1000

# Days without journal activity before an active packet counts as stale
STALE_PACKET_DAYS = 14

DEFAULT_MAX_WORKERS = 4


def get_max_workers() -> int:
    """Worker pool size for parallel anchor checks (CE_MAX_WORKERS overrides)."""
    raw = os.environ.get("CE_MAX_WORKERS")
    if raw:
        try:
            return max(1, int(raw))
        except ValueError:
            pass
    return DEFAULT_MAX_WORKERS


def find_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find the root directory containing context/ by walking up.

    Args:
        start_path: Starting path for search. Defaults to cwd.

    Returns:
        Path to directory containing context/, or None if not found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        if (current / CONTEXT_DIR).exists():
            return current
        current = current.parent

    # Check root
    if (current / CONTEXT_DIR).exists():
        return current

    return None


def is_initialized(root: Path) -> bool:
    """Check whether the config file exists under root."""
    return (root / CONFIG_FILE).exists()


def load_config(root: Path) -> ContextConfig:
    """Load and validate the project configuration.

    Raises:
        NotInitialized: If the config file does not exist.
        ConfigInvalid: If the file is not valid JSON or fails validation.
    """
    config_path = root / CONFIG_FILE
    if not config_path.exists():
        raise NotInitialized("Context Engine not initialized. Run 'ce init' first.")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigInvalid(f"{config_path}: {e}") from e

    try:
        return ContextConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigInvalid(f"{config_path}: {e}") from e


def save_config(config: ContextConfig, root: Path) -> None:
    """Write the project configuration."""
    config_path = root / CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")


def load_current_context(root: Path) -> CurrentContext:
    """Load the currently selected packet, if any."""
    context_path = root / CURRENT_CONTEXT_FILE
    if not context_path.exists():
        return CurrentContext()
    try:
        return CurrentContext.model_validate_json(context_path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise ConfigInvalid(f"{context_path}: {e}") from e


def save_current_context(packet_id: Optional[str], root: Path) -> CurrentContext:
    """Select a packet as the current context."""
    context = CurrentContext(
        packet_id=packet_id,
        switched_at=datetime.now(timezone.utc) if packet_id else None,
    )
    context_path = root / CURRENT_CONTEXT_FILE
    context_path.parent.mkdir(parents=True, exist_ok=True)
    context_path.write_text(context.model_dump_json(indent=2), encoding="utf-8")
    return context


def resolve_root(base: Path) -> Path:
    """Project root at or above base, falling back to base itself."""
    return find_project_root(base) or base.resolve()


def require_root(base: Path) -> Path:
    """Resolve the project root and make sure it has been initialized.

    Raises:
        NotInitialized: If no configuration exists at the resolved root.
    """
    root = resolve_root(base)
    if not is_initialized(root):
        raise NotInitialized("Context Engine not initialized. Run 'ce init' first.")
    return root


def resolve_packet_id(packet_id: Optional[str], root: Path) -> str:
    """Explicit packet id, or the one selected with ``ce switch``.

    Raises:
        NotFound: If neither is available.
    """
    if packet_id:
        return packet_id
    current = load_current_context(root)
    if not current.packet_id:
        raise NotFound("No packet given and no current packet. Run 'ce switch <id>' first.")
    return current.packet_id
