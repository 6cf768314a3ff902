"""Create, drift-check and refresh semantic anchors."""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..analysis.symbols import Symbol, SymbolExtractor
from ..errors import NotFound
from ..git import current_revision
from ..logging import log_event
from ..models import DriftStatus, SemanticAnchor


@dataclass
class AnchorCheckResult:
    """Outcome of checking one anchor against the working tree."""
    anchor: SemanticAnchor
    status: DriftStatus
    message: str
    current_hash: Optional[str] = None


STATUS_ICONS = {
    DriftStatus.VALID: "✓",
    DriftStatus.SEMANTIC_DRIFT: "⚠",
    DriftStatus.DELETED: "✗",
}


def _relative_posix(file_path: Path, root: Path) -> str:
    if file_path.is_absolute():
        try:
            file_path = file_path.resolve().relative_to(root.resolve())
        except ValueError:
            pass
    return file_path.as_posix()


def _read_source(anchor: SemanticAnchor, root: Path) -> Optional[str]:
    full_path = root / anchor.path
    if not full_path.is_file():
        return None
    try:
        return full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def create_anchor(
    file_path: Path,
    symbol: Symbol,
    root: Path,
    revision: Optional[str] = None,
) -> SemanticAnchor:
    """Capture an anchor for a freshly extracted symbol.

    Hash, signature and line range are copied verbatim from the symbol; the
    revision defaults to the current git HEAD of root.
    """
    return SemanticAnchor(
        path=_relative_posix(file_path, root),
        symbol=symbol.name,
        language=symbol.language,
        symbol_type=symbol.kind,
        semantic_hash=symbol.content_hash,
        git_ref=revision or current_revision(root),
        captured_at=datetime.now(timezone.utc),
        signature=symbol.signature,
        line_start=symbol.start_line,
        line_end=symbol.end_line,
    )


def check_anchor(
    anchor: SemanticAnchor,
    root: Path,
    extractor: Optional[SymbolExtractor] = None,
) -> AnchorCheckResult:
    """Classify an anchor as valid, drifted or deleted.

    A missing or unreadable file and a missing symbol both count as deleted.
    """
    content = _read_source(anchor, root)
    if content is None:
        return AnchorCheckResult(
            anchor=anchor,
            status=DriftStatus.DELETED,
            message=f"File not found: {anchor.path}",
        )

    extractor = extractor or SymbolExtractor()
    found = extractor.find_symbol(content, anchor.symbol, anchor.language)

    if found is None:
        return AnchorCheckResult(
            anchor=anchor,
            status=DriftStatus.DELETED,
            message=f"Symbol '{anchor.symbol}' not found in {anchor.path}",
        )

    if found.content_hash == anchor.semantic_hash:
        return AnchorCheckResult(
            anchor=anchor,
            status=DriftStatus.VALID,
            message="Anchor is valid",
            current_hash=found.content_hash,
        )

    return AnchorCheckResult(
        anchor=anchor,
        status=DriftStatus.SEMANTIC_DRIFT,
        message=f"Semantic drift detected in '{anchor.symbol}'",
        current_hash=found.content_hash,
    )


def check_anchors(
    anchors: list[SemanticAnchor],
    root: Path,
    extractor: Optional[SymbolExtractor] = None,
    max_workers: int = 4,
) -> list[AnchorCheckResult]:
    """Check many anchors in parallel; results follow the input order."""
    if not anchors:
        return []

    extractor = extractor or SymbolExtractor()
    workers = max(1, min(max_workers, len(anchors)))

    if workers == 1:
        return [check_anchor(a, root, extractor) for a in anchors]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda a: check_anchor(a, root, extractor), anchors))


def refresh_anchor(
    anchor: SemanticAnchor,
    root: Path,
    extractor: Optional[SymbolExtractor] = None,
    revision: Optional[str] = None,
) -> SemanticAnchor:
    """Re-capture an anchor from the current source.

    Path, symbol, language and kind are kept; hash, signature, lines,
    revision and timestamp are replaced together.

    Raises:
        NotFound: If the file or the symbol no longer exists.
    """
    content = _read_source(anchor, root)
    if content is None:
        raise NotFound(f"File not found: {anchor.path}")

    extractor = extractor or SymbolExtractor()
    found = extractor.find_symbol(content, anchor.symbol, anchor.language)
    if found is None:
        raise NotFound(f"Symbol '{anchor.symbol}' not found in {anchor.path}")

    refreshed = anchor.model_copy(update={
        "semantic_hash": found.content_hash,
        "git_ref": revision or current_revision(root),
        "captured_at": datetime.now(timezone.utc),
        "signature": found.signature,
        "line_start": found.start_line,
        "line_end": found.end_line,
    })

    if refreshed.semantic_hash != anchor.semantic_hash:
        log_event("anchor_refreshed", {
            "path": anchor.path,
            "symbol": anchor.symbol,
            "old_hash": anchor.semantic_hash,
            "new_hash": refreshed.semantic_hash,
        }, root)

    return refreshed


def format_anchor_status(result: AnchorCheckResult) -> str:
    """One-line human readable status for an anchor check."""
    icon = STATUS_ICONS[result.status]
    return f"{icon} {result.anchor.symbol} ({result.anchor.path}): {result.message}"
