"""SC Heroes 聊天协议。"""

from .constants import LANGUAGES, PacketId
from .packets import ChatMessage
from .registry import PACKET_DECODERS, dispatch, read_packet
from .session import ChatSession

__all__ = [
    "ChatMessage",
    "ChatSession",
    "LANGUAGES",
    "PACKET_DECODERS",
    "PacketId",
    "dispatch",
    "read_packet",
]
