# File: src/scheroes_core/protocols/chat/packets.py
"""
SC Heroes 聊天协议封包编解码 (Packet Codec)

负责 Python 数据结构与聊天协议二进制字节流之间的转换。
- 写方向: 各包类型的 encode() 通过 PacketWriter 累积完整字节后一次性返回。
- 读方向: decode_* 函数在判别字节已被注册表消费之后，读取包体。

本模块是无状态的 (Stateless)，不持有任何 socket 或会话信息。
整数一律为小端序；字符串为 Varint 长度前缀 + UTF-8 字节。
"""

import logging
import struct
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Union

from ...utils import decode_varint, encode_varint
from .constants import CHANGE_LANGUAGE_RESERVED, PacketId

logger = logging.getLogger(__name__)


# =========================================================================
# 基础读写原语 (Primitives)
# =========================================================================


class PacketWriter:
    """累积式写缓冲。

    所有字段先写入内部缓冲，finish() 返回不可变的完整字节并清空缓冲，
    保证传输层永远不会看到写了一半的包。
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self._buffer.append(value & 0xFF)

    def write_bytes(self, data: bytes) -> None:
        self._buffer.extend(data)

    def write_long(self, value: int) -> None:
        """写入 4 字节小端无符号整数。"""
        self._buffer.extend(struct.pack("<I", value))

    def write_string(self, text: str) -> None:
        """写入 Varint 长度前缀的 UTF-8 字符串。"""
        data = text.encode("utf-8")
        self._buffer.extend(encode_varint(len(data)))
        self._buffer.extend(data)

    def finish(self) -> bytes:
        packet = bytes(self._buffer)
        self._buffer.clear()
        return packet

    def __len__(self) -> int:
        return len(self._buffer)


class PacketReader:
    """基于阻塞式 read_exact(n) 数据源的读原语。

    数据源必须严格返回 n 个字节，否则抛出 TransportClosedError。
    """

    def __init__(self, read_exact: Callable[[int], bytes]) -> None:
        self._read_exact = read_exact

    def read_byte(self) -> int:
        return self._read_exact(1)[0]

    def read_bytes(self, n: int) -> bytes:
        if n == 0:
            return b""
        return self._read_exact(n)

    def read_long(self) -> int:
        """读取 4 字节小端无符号整数。"""
        return struct.unpack("<I", self._read_exact(4))[0]

    def read_varint(self) -> int:
        return decode_varint(self.read_byte)

    def read_string(self) -> str:
        """读取 Varint 长度前缀的 UTF-8 字符串。

        长度按字节计，非法的 UTF-8 序列不影响后续偏移；
        这些序列会被替换为 U+FFFD，原始字节不保留。
        """
        size = self.read_varint()
        return self.read_bytes(size).decode("utf-8", "replace")


# =========================================================================
# 数据模型
# =========================================================================


@dataclass(frozen=True)
class ChatMessage:
    """一条频道/公会消息。仅由解码 0x03 / 0x0c 包产生。

    Attributes:
        uid: 发送者 UID。
        name: 发送者昵称。
        title_id: 称号 ID (称号名称表不在本库范围内)。
        info: 附加信息 (通常为空)。
        text: 消息正文。
        timestamp: 服务器时间 (UTC)。
        is_clan: 是否来自公会频道。
    """

    uid: int
    name: str
    title_id: int
    info: str
    text: str
    timestamp: datetime
    is_clan: bool = False


# =========================================================================
# 包类型 (Closed Variant Set)
# =========================================================================


@dataclass(frozen=True)
class JoinPacket:
    """加入频道 (0x01)。"""

    ID: ClassVar[int] = PacketId.JOIN

    version: int = 0
    uid: int = 0
    language: str = ""

    def encode(self) -> bytes:
        w = PacketWriter()
        w.write_byte(self.ID)
        w.write_long(self.version)
        w.write_long(self.uid)
        w.write_string(self.language)
        return w.finish()


@dataclass(frozen=True)
class JoinClanPacket:
    """加入公会频道 (0x0b)。"""

    ID: ClassVar[int] = PacketId.JOIN_CLAN

    cid: int = 0

    def encode(self) -> bytes:
        w = PacketWriter()
        w.write_byte(self.ID)
        w.write_long(self.cid)
        return w.finish()


@dataclass(frozen=True)
class ChangeLanguagePacket:
    """切换语言频道 (0x07)。末尾 4 字节含义未知，恒为 0。"""

    ID: ClassVar[int] = PacketId.CHANGE_LANGUAGE

    version: int = 0
    uid: int = 0
    language: str = ""

    def encode(self) -> bytes:
        w = PacketWriter()
        w.write_byte(self.ID)
        w.write_long(self.version)
        w.write_long(self.uid)
        w.write_string(self.language)
        w.write_long(CHANGE_LANGUAGE_RESERVED)
        return w.finish()


@dataclass(frozen=True)
class MessagePacket:
    """频道消息 (0x03)。

    发送时只携带 text；接收时 message 为完整解码结果。
    """

    ID: ClassVar[int] = PacketId.MESSAGE

    text: str = ""
    message: ChatMessage | None = None

    def encode(self) -> bytes:
        w = PacketWriter()
        w.write_byte(self.ID)
        w.write_string(self.text)
        return w.finish()


@dataclass(frozen=True)
class ClanMessagePacket:
    """公会消息 (0x0c)，结构与 MessagePacket 相同。"""

    ID: ClassVar[int] = PacketId.CLAN_MESSAGE

    text: str = ""
    message: ChatMessage | None = None

    def encode(self) -> bytes:
        w = PacketWriter()
        w.write_byte(self.ID)
        w.write_string(self.text)
        return w.finish()


@dataclass(frozen=True)
class StatusRequestPacket:
    """状态请求 (0x08)，仅一个字节，兼作保活。"""

    ID: ClassVar[int] = PacketId.STATUS_REQUEST

    def encode(self) -> bytes:
        return bytes([self.ID])


@dataclass(frozen=True)
class StatusResponsePacket:
    """服务器状态 (0x06)。"""

    ID: ClassVar[int] = PacketId.STATUS_RESPONSE

    online_users: int = 0


@dataclass(frozen=True)
class AuthRequestPacket:
    """密钥下发 (0x0e)。握手密码学不在本库范围内，key 仅作保存。"""

    ID: ClassVar[int] = PacketId.AUTH_REQUEST

    key: bytes = b""


@dataclass(frozen=True)
class AuthResponsePacket:
    """密钥应答 (0x0f)。"""

    ID: ClassVar[int] = PacketId.AUTH_RESPONSE

    key: bytes = b""

    def encode(self) -> bytes:
        w = PacketWriter()
        w.write_byte(self.ID)
        w.write_long(len(self.key))
        w.write_bytes(self.key)
        return w.finish()


ChatPacket = Union[
    JoinPacket,
    MessagePacket,
    StatusResponsePacket,
    ChangeLanguagePacket,
    StatusRequestPacket,
    JoinClanPacket,
    ClanMessagePacket,
    AuthRequestPacket,
    AuthResponsePacket,
]


# =========================================================================
# 解码 (判别字节之后的包体)
# =========================================================================


def _read_message(reader: PacketReader, is_clan: bool) -> ChatMessage:
    # 字段顺序固定: uid, name, title, info, text, time
    uid = reader.read_long()
    name = reader.read_string()
    title_id = reader.read_long()
    info = reader.read_string()
    text = reader.read_string()
    timestamp = datetime.fromtimestamp(reader.read_long(), tz=timezone.utc)
    return ChatMessage(
        uid=uid,
        name=name,
        title_id=title_id,
        info=info,
        text=text,
        timestamp=timestamp,
        is_clan=is_clan,
    )


def decode_message(reader: PacketReader) -> MessagePacket:
    message = _read_message(reader, is_clan=False)
    return MessagePacket(text=message.text, message=message)


def decode_clan_message(reader: PacketReader) -> ClanMessagePacket:
    message = _read_message(reader, is_clan=True)
    return ClanMessagePacket(text=message.text, message=message)


def decode_status_response(reader: PacketReader) -> StatusResponsePacket:
    """解析状态包: 4 字节未知 + 1 字节未知 (通常为 0x09) + u32 在线人数。"""
    reader.read_long()
    reader.read_byte()
    online_users = reader.read_long()
    logger.debug("status_response: online_users=%d", online_users)
    return StatusResponsePacket(online_users=online_users)


def decode_auth_request(reader: PacketReader) -> AuthRequestPacket:
    size = reader.read_long()
    key = reader.read_bytes(size)
    logger.debug("auth_request: key_len=%d", size)
    return AuthRequestPacket(key=key)


def decode_empty(packet_type: type) -> Callable[[PacketReader], ChatPacket]:
    """仅客户端发送的包类型：收到时没有包体可读，返回空实例。"""

    def _decode(reader: PacketReader) -> ChatPacket:
        return packet_type()

    return _decode
