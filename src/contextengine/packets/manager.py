"""Packet management: front-matter markdown files under context/packets/."""
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml

from ..config import PACKETS_ACTIVE_DIR, PACKETS_COMPLETED_DIR
from ..errors import PacketNotFound
from ..logging import log_event
from ..models import (
    CLOSED_STATUSES,
    VALID_STATUS_TRANSITIONS,
    Packet,
    PacketMetadata,
    PacketStatus,
    PacketType,
    SemanticAnchor,
)
from ..storage import read_markdown, write_markdown


PACKET_BODY_TEMPLATE = """## Notes

Add implementation notes here.

## Progress

- [ ] Started
- [ ] In progress
- [ ] Ready for review
- [ ] Completed
"""


def format_packet_id(packet_type: PacketType, number: int) -> str:
    """``FEAT-001`` style id."""
    return f"{packet_type.value.upper()}-{number:03d}"


class PacketManager:
    """Manage packets in context/packets/{active,completed}."""

    def __init__(self, root: Path):
        self.root = root
        self.active_dir = root / PACKETS_ACTIVE_DIR
        self.completed_dir = root / PACKETS_COMPLETED_DIR

    def _path_for(self, packet: Packet) -> Path:
        folder = self.completed_dir if packet.status in CLOSED_STATUSES else self.active_dir
        return folder / f"{packet.id}.md"

    def find_path(self, packet_id: str) -> Optional[Path]:
        """File currently holding the packet, or None."""
        for folder in (self.active_dir, self.completed_dir):
            path = folder / f"{packet_id}.md"
            if path.exists():
                return path
        return None

    def _packet_files(self) -> list[Path]:
        files: list[Path] = []
        for folder in (self.active_dir, self.completed_dir):
            if folder.is_dir():
                files.extend(sorted(folder.glob("*.md")))
        return files

    def all_ids(self) -> list[str]:
        """Ids of every packet file, active first."""
        return [path.stem for path in self._packet_files()]

    def next_packet_id(self, packet_type: PacketType) -> str:
        """Next free id for a type, one past the highest existing number."""
        prefix = packet_type.value.upper()
        pattern = re.compile(rf"^{prefix}-(\d+)$")

        highest = 0
        for packet_id in self.all_ids():
            match = pattern.match(packet_id)
            if match:
                highest = max(highest, int(match.group(1)))

        return format_packet_id(packet_type, highest + 1)

    def get_packet(self, packet_id: str) -> Optional[Packet]:
        """Get a packet by ID, or None if no such file exists."""
        path = self.find_path(packet_id)
        if path is None:
            return None
        return Packet.model_validate(read_markdown(path).data)

    def load_packet(self, packet_id: str) -> Packet:
        """Get a packet by ID.

        Raises:
            PacketNotFound: If no packet file exists for the id.
            ValueError: If the packet file is malformed.
        """
        packet = self.get_packet(packet_id)
        if packet is None:
            raise PacketNotFound(packet_id)
        return packet

    def list_packets(self, status: Optional[PacketStatus] = None) -> list[Packet]:
        """List packets with optional status filtering.

        Unreadable packet files are skipped with a ``packet_skipped`` event.
        """
        packets: list[Packet] = []
        for path in self._packet_files():
            try:
                packet = Packet.model_validate(read_markdown(path).data)
            except (OSError, ValueError, yaml.YAMLError) as e:
                log_event("packet_skipped", {"path": path.name, "error": str(e).split("\n", 1)[0]}, self.root)
                continue
            if status is None or packet.status == status:
                packets.append(packet)
        return packets

    def save_packet(self, packet: Packet, touch: bool = True) -> Path:
        """Write a packet, keeping its markdown body and moving it when closed."""
        if touch:
            packet = packet.model_copy(update={
                "metadata": packet.metadata.model_copy(update={"updated_at": datetime.now(timezone.utc)}),
            })

        old_path = self.find_path(packet.id)
        body = read_markdown(old_path).content if old_path else PACKET_BODY_TEMPLATE
        new_path = self._path_for(packet)

        write_markdown(new_path, packet, body)
        if old_path is not None and old_path != new_path:
            old_path.unlink()
        return new_path

    def create_packet(
        self,
        packet_type: PacketType,
        title: str,
        goal: str,
        dod: list[str],
        constraints: Optional[list[str]] = None,
        tests: Optional[list[str]] = None,
        author: Optional[str] = None,
        branch_name: Optional[str] = None,
    ) -> Packet:
        """Create a new draft packet with the next free id."""
        now = datetime.now(timezone.utc)
        packet = Packet(
            id=self.next_packet_id(packet_type),
            type=packet_type,
            title=title,
            goal=goal,
            dod=dod,
            constraints=constraints or [],
            tests=tests or [],
            metadata=PacketMetadata(
                created_at=now,
                updated_at=now,
                author=author,
                branch_name=branch_name,
            ),
        )
        self.save_packet(packet, touch=False)
        return packet

    def add_anchor(self, packet_id: str, anchor: SemanticAnchor) -> Packet:
        """Attach an anchor, replacing any existing one for the same path and symbol."""
        packet = self.load_packet(packet_id)
        anchors = [
            a for a in packet.repo_truth
            if not (a.path == anchor.path and a.symbol == anchor.symbol)
        ]
        anchors.append(anchor)
        return self.replace_anchors(packet_id, anchors, packet=packet)

    def replace_anchors(
        self,
        packet_id: str,
        anchors: list[SemanticAnchor],
        packet: Optional[Packet] = None,
    ) -> Packet:
        """Swap a packet's whole anchor list in one write."""
        packet = packet or self.load_packet(packet_id)
        updated = packet.model_copy(update={"repo_truth": list(anchors)})
        self.save_packet(updated)
        return self.load_packet(packet_id)

    def link_adr(self, packet_id: str, adr_id: str) -> Packet:
        """Record an ADR as explicitly related to the packet."""
        packet = self.load_packet(packet_id)
        related = list(packet.metadata.related_adrs)
        if adr_id not in related:
            related.append(adr_id)

        updated = packet.model_copy(update={
            "metadata": packet.metadata.model_copy(update={"related_adrs": related}),
        })
        self.save_packet(updated)
        return self.load_packet(packet_id)

    def update_status(self, packet_id: str, status: PacketStatus) -> Packet:
        """Move a packet through its lifecycle.

        Raises:
            PacketNotFound: If the packet does not exist.
            ValueError: If the transition is not allowed.
        """
        packet = self.load_packet(packet_id)
        allowed = VALID_STATUS_TRANSITIONS[packet.status]
        if status not in allowed:
            allowed_str = ", ".join(s.value for s in allowed) or "none"
            raise ValueError(
                f"Invalid status transition: {packet.status.value} -> {status.value} "
                f"(allowed: {allowed_str})"
            )

        updated = packet.model_copy(update={"status": status})
        self.save_packet(updated)
        log_event("packet_status", {
            "id": packet_id,
            "from": packet.status.value,
            "to": status.value,
        }, self.root)
        return self.load_packet(packet_id)
