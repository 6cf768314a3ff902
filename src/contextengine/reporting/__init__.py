"""Reporting module for Context Engine - health checks and their display."""
from .health import (
    HealthIssue,
    HealthReport,
    check_health,
    format_health_plain,
    print_health_rich,
)

__all__ = [
    "HealthIssue",
    "HealthReport",
    "check_health",
    "format_health_plain",
    "print_health_rich",
]
