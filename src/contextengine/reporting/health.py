"""Context health - repo map presence plus drifted, orphaned and stale active packets."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from ..anchors import check_anchors
from ..analysis import SymbolExtractor
from ..config import REPO_MAP_FILE, STALE_PACKET_DAYS, get_max_workers
from ..models import DriftStatus, Packet, PacketStatus
from ..packets import PacketManager
from ..records import load_journal_entries
from ..retrieval.relevance import days_since

IssueType = Literal["missing", "drift", "orphan", "stale"]
Severity = Literal["error", "warning"]


@dataclass
class HealthIssue:
    type: IssueType
    message: str
    severity: Severity
    packet_id: Optional[str] = None


@dataclass
class HealthReport:
    """Counts and issues found across active packets."""
    packets_checked: int = 0
    drift_count: int = 0
    orphan_count: int = 0
    stale_count: int = 0
    missing_repo_map: bool = False
    issues: list[HealthIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[HealthIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[HealthIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def healthy(self) -> bool:
        return not self.issues


def last_activity_by_packet(root: Path) -> dict[str, datetime]:
    """Most recent journal timestamp per packet id."""
    latest: dict[str, datetime] = {}
    for entry in load_journal_entries(root):
        current = latest.get(entry.packet_id)
        if current is None or entry.timestamp > current:
            latest[entry.packet_id] = entry.timestamp
    return latest


def _check_staleness(
    packet: Packet,
    last_activity: Optional[datetime],
    now: datetime,
    stale_days: int,
) -> Optional[HealthIssue]:
    if last_activity is None:
        age = days_since(packet.metadata.created_at, now)
        if age > stale_days:
            return HealthIssue(
                type="stale",
                packet_id=packet.id,
                message=f"Packet {packet.id} has no journal entries (created {int(age)} days ago)",
                severity="warning",
            )
        return None

    idle = days_since(last_activity, now)
    if idle > stale_days:
        return HealthIssue(
            type="stale",
            packet_id=packet.id,
            message=f"Packet {packet.id} has no journal activity in {int(idle)} days",
            severity="warning",
        )
    return None


def check_health(
    root: Path,
    manager: Optional[PacketManager] = None,
    extractor: Optional[SymbolExtractor] = None,
    now: Optional[datetime] = None,
    stale_days: int = STALE_PACKET_DAYS,
) -> HealthReport:
    """Check the repo map, then every active packet for missing anchors,
    drift and inactivity.

    Deleted anchors are errors; a missing repo map, drifted anchors, orphans
    and stale packets are warnings.
    """
    manager = manager or PacketManager(root)
    extractor = extractor or SymbolExtractor()
    now = now or datetime.now(timezone.utc)
    report = HealthReport()
    activity = last_activity_by_packet(root)

    if not (root / REPO_MAP_FILE).exists():
        report.missing_repo_map = True
        report.issues.append(HealthIssue(
            type="missing",
            message=f"{REPO_MAP_FILE.name} is missing",
            severity="warning",
        ))

    for packet in manager.list_packets(status=PacketStatus.ACTIVE):
        report.packets_checked += 1

        if not packet.repo_truth:
            report.orphan_count += 1
            report.issues.append(HealthIssue(
                type="orphan",
                packet_id=packet.id,
                message=f"Packet {packet.id} has no semantic anchors",
                severity="warning",
            ))
        else:
            results = check_anchors(packet.repo_truth, root, extractor, max_workers=get_max_workers())
            for result in results:
                if result.status is DriftStatus.VALID:
                    continue
                report.drift_count += 1
                report.issues.append(HealthIssue(
                    type="drift",
                    packet_id=packet.id,
                    message=f"{packet.id}: {result.anchor.symbol} has {result.status.value}",
                    severity="error" if result.status is DriftStatus.DELETED else "warning",
                ))

        stale = _check_staleness(packet, activity.get(packet.id), now, stale_days)
        if stale is not None:
            report.stale_count += 1
            report.issues.append(stale)

    return report


def format_health_plain(report: HealthReport) -> str:
    """Format a health report as plain text."""
    lines = ["Context Health Report", ""]

    if report.healthy:
        lines.append("✓ All checks passed!")
    else:
        if report.errors:
            lines.append("Errors:")
            lines.extend(f"  ✗ {issue.message}" for issue in report.errors)
            lines.append("")
        if report.warnings:
            lines.append("Warnings:")
            lines.extend(f"  ⚠ {issue.message}" for issue in report.warnings)

    lines.extend([
        "",
        "Summary:",
        f"  Active packets:  {report.packets_checked}",
        f"  Semantic drift:  {report.drift_count}",
        f"  Orphan packets:  {report.orphan_count}",
        f"  Stale packets:   {report.stale_count}",
        f"  Repo map:        {'missing' if report.missing_repo_map else 'present'}",
    ])
    return "\n".join(lines)


def print_health_rich(report: HealthReport) -> None:
    """Print a health report with rich formatting."""
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich import box

    console = Console()

    console.print()
    console.print(Panel.fit("[bold blue]CONTEXT HEALTH REPORT[/bold blue]", box=box.DOUBLE))
    console.print()

    if report.issues:
        issues_table = Table(title="Issues", box=box.ROUNDED)
        issues_table.add_column("Severity")
        issues_table.add_column("Type", style="cyan")
        issues_table.add_column("Packet")
        issues_table.add_column("Message")
        for issue in report.issues:
            severity = "[red]error[/red]" if issue.severity == "error" else "[yellow]warning[/yellow]"
            issues_table.add_row(severity, issue.type, issue.packet_id or "", issue.message)
        console.print(issues_table)
        console.print()
    else:
        console.print("[green]✓ All checks passed![/green]")
        console.print()

    summary_table = Table(title="Summary", box=box.ROUNDED, show_header=False)
    summary_table.add_column("Check", style="cyan")
    summary_table.add_column("Count", justify="right")

    def count_cell(count: int) -> str:
        return f"[yellow]{count}[/yellow]" if count else "[green]0[/green]"

    summary_table.add_row("Active packets", str(report.packets_checked))
    summary_table.add_row("Semantic drift", count_cell(report.drift_count))
    summary_table.add_row("Orphan packets", count_cell(report.orphan_count))
    summary_table.add_row("Stale packets", count_cell(report.stale_count))
    summary_table.add_row(
        "Repo map",
        "[yellow]missing[/yellow]" if report.missing_repo_map else "[green]present[/green]",
    )
    console.print(summary_table)
    console.print()
