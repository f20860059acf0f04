# src/scheroes_core/protocols/chat/registry.py
"""
聊天包注册表 (Packet Registry)

判别字节 -> 解码函数 的静态映射表。合法包集合是封闭且可审计的：
未登记的字节一律视为字节流失步，直接抛出 UnknownPacketError，绝不跳过。
"""

import logging
from collections.abc import Callable

from ...exceptions import UnknownPacketError
from . import packets
from .constants import PacketId

logger = logging.getLogger(__name__)

PacketDecoder = Callable[[packets.PacketReader], packets.ChatPacket]

PACKET_DECODERS: dict[int, PacketDecoder] = {
    PacketId.JOIN: packets.decode_empty(packets.JoinPacket),
    PacketId.MESSAGE: packets.decode_message,
    PacketId.STATUS_RESPONSE: packets.decode_status_response,
    PacketId.CHANGE_LANGUAGE: packets.decode_empty(packets.ChangeLanguagePacket),
    PacketId.STATUS_REQUEST: packets.decode_empty(packets.StatusRequestPacket),
    PacketId.JOIN_CLAN: packets.decode_empty(packets.JoinClanPacket),
    PacketId.CLAN_MESSAGE: packets.decode_clan_message,
    PacketId.AUTH_REQUEST: packets.decode_auth_request,
    PacketId.AUTH_RESPONSE: packets.decode_empty(packets.AuthResponsePacket),
}


def dispatch(packet_id: int) -> PacketDecoder:
    """根据判别字节查找解码函数。

    Raises:
        UnknownPacketError: 判别字节不在注册表中。
    """
    decoder = PACKET_DECODERS.get(packet_id)
    if decoder is None:
        raise UnknownPacketError(packet_id)
    return decoder


def read_packet(reader: packets.PacketReader) -> packets.ChatPacket:
    """读取判别字节，分发并解码一个完整的包。"""
    packet_id = reader.read_byte()
    decoder = dispatch(packet_id)
    packet = decoder(reader)
    logger.debug(f"收到聊天包: 0x{packet_id:02x} ({type(packet).__name__})")
    return packet
