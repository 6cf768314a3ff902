"""Semantic anchors - drift-checked pointers from packets into code."""
from .manager import (
    AnchorCheckResult,
    create_anchor,
    check_anchor,
    check_anchors,
    refresh_anchor,
    format_anchor_status,
)

__all__ = [
    "AnchorCheckResult",
    "create_anchor",
    "check_anchor",
    "check_anchors",
    "refresh_anchor",
    "format_anchor_status",
]
