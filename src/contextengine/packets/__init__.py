"""Work packets: goal, definition of done and semantic anchors."""
from .manager import PacketManager, format_packet_id

__all__ = ["PacketManager", "format_packet_id"]
