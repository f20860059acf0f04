# File: src/scheroes_core/protocols/game/packets.py
"""
SC Heroes 游戏 API 封包编解码 (Packet Codec)

游戏 API 的请求/响应体都经 HTTP POST 传输，但编码方式与聊天协议完全不同:
- 字符串为 UTF-16LE，长度由前导的"类型/标志"字节决定取 1 字节还是 2 字节。
- 序列化值来自第三方运行时，不同调用点的字符串格式略有差异，
  因此有 a/b/c/d 四种变体，区别仅在于长度开销和尾部填充字节数。
- 请求体末尾追加 uid + 版本号尾部，服务器依靠 x-DL 头定位该尾部。

本模块是无状态的 (Stateless)。
"""

import io
import json
import logging
import struct
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any

from ...exceptions import DataFormatError
from . import constants

logger = logging.getLogger(__name__)


class GameBuffer:
    """游戏 API 的内存读写缓冲。

    Args:
        data: 待解析的响应体；为 None 时作为空的写缓冲使用。
    """

    def __init__(self, data: bytes | None = None) -> None:
        self._buffer = io.BytesIO(data or b"")

    # --- 读原语 ---

    def read_bytes(self, n: int) -> bytes:
        data = self._buffer.read(n)
        if len(data) != n:
            raise DataFormatError(
                self.getvalue(), f"需要 {n} 字节，仅剩 {len(data)} 字节"
            )
        return data

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_short(self) -> int:
        return struct.unpack("<H", self.read_bytes(2))[0]

    def read_long(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]

    def _read_string(self, overhead: int, padding: int) -> str:
        """读取一个 UTF-16LE 字符串。

        1. 读取类型/标志字节。
        2. 最高位或 bit1 置位时，长度为随后的 u16；否则标志字节本身即长度。
        3. 长度减去固定开销得到载荷字节数，为负数说明帧格式不匹配。
        4. 读取载荷并按 UTF-16LE 解码。
        5. 丢弃尾部填充字节 (内容不校验，但必须消费以保持后续偏移正确)。
        """
        flag = self.read_byte()
        if flag & (constants.FLAG_LONG_LENGTH_HIGH | constants.FLAG_LONG_LENGTH_BIT1):
            size = self.read_short()
        else:
            size = flag

        size -= overhead
        if size < 0:
            raise DataFormatError(self.getvalue(), f"字符串长度为负数 ({size})")

        raw = self.read_bytes(size)
        try:
            text = raw.decode("utf-16-le")
        except UnicodeDecodeError as e:
            raise DataFormatError(self.getvalue(), f"UTF-16 解码失败: {e}") from e

        self.read_bytes(padding)
        return text

    def read_string_a(self) -> str:
        return self._read_string(*constants.STRING_VARIANTS["a"])

    def read_string_b(self) -> str:
        return self._read_string(*constants.STRING_VARIANTS["b"])

    def read_string_c(self) -> str:
        return self._read_string(*constants.STRING_VARIANTS["c"])

    def read_string_d(self) -> str:
        return self._read_string(*constants.STRING_VARIANTS["d"])

    # --- 写原语 ---

    def write_byte(self, value: int) -> None:
        self._buffer.write(struct.pack("B", value))

    def write_bytes(self, data: bytes) -> None:
        self._buffer.write(data)

    def write_long(self, value: int) -> None:
        self._buffer.write(struct.pack("<I", value))

    def write_string(self, text: str) -> None:
        """写入 1 字节长度前缀的字符串 (无 Varint)。"""
        data = text.encode("utf-8")
        if len(data) > 0xFF:
            raise ValueError(f"字符串过长 ({len(data)} > 255): {text!r}")
        self.write_byte(len(data))
        self._buffer.write(data)

    # --- 辅助 ---

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()

    @property
    def size(self) -> int:
        return len(self._buffer.getbuffer())

    @property
    def remaining(self) -> int:
        return self.size - self._buffer.tell()


# =========================================================================
# 请求 (Requests)
# =========================================================================


@dataclass(frozen=True)
class GameRequest:
    """序列化完成的请求。

    Attributes:
        body: 完整请求体 (载荷 + uid/版本号尾部)。
        dl: 尾部之前、首个操作码之后的载荷字节数，作为 x-DL 头发送。
    """

    body: bytes
    dl: int


def build_trailer(uid: int, version: str) -> bytes:
    """构建请求尾部: u32 uid + 1 字节长度前缀的版本号。"""
    tail = GameBuffer()
    tail.write_long(uid)
    tail.write_string(version)
    return tail.getvalue()


def compute_dl(body: bytes, trailer: bytes) -> int:
    """dl = 总长度 - 尾部长度 - 1 (首个操作码字节)。"""
    return len(body) - len(trailer) - constants.DL_OPCODE_LEN


def _finish_request(payload: GameBuffer, uid: int, version: str) -> GameRequest:
    trailer = build_trailer(uid, version)
    payload.write_bytes(trailer)
    body = payload.getvalue()
    return GameRequest(body=body, dl=compute_dl(body, trailer))


def build_server_time_request(version: str) -> GameRequest:
    """构建 GetServerTime 请求: 00 + 尾部 (uid 占位 0xffffffff)。"""
    payload = GameBuffer()
    payload.write_bytes(constants.SERVER_TIME_OPCODE)
    return _finish_request(payload, constants.ANONYMOUS_UID, version)


def build_auth_request(uid: int, version: str) -> GameRequest:
    """构建 AuthRequest 请求: 7 字节魔数 + u32 uid + 尾部。"""
    payload = GameBuffer()
    payload.write_bytes(constants.AUTH_MAGIC)
    payload.write_long(uid)
    return _finish_request(payload, uid, version)


def build_auth_challenge_request(uid: int, version: str) -> GameRequest:
    """构建 AuthChallangeResponse 请求: 7 字节魔数 + 尾部 (载荷中不含 uid)。"""
    payload = GameBuffer()
    payload.write_bytes(constants.AUTH_MAGIC)
    return _finish_request(payload, uid, version)


# =========================================================================
# 响应 (Responses)
# =========================================================================


@dataclass(frozen=True)
class ServerTimeResponse:
    unknown: bytes
    time: datetime

    @property
    def timestamp(self) -> int:
        return int(self.time.timestamp())


def parse_server_time_response(data: bytes) -> ServerTimeResponse:
    """解析 GetServerTime 响应: 3 字节未知 + u32 Unix 时间戳。"""
    buf = GameBuffer(data)
    unknown = buf.read_bytes(constants.SERVER_TIME_UNKNOWN_LEN)
    timestamp = buf.read_long()
    return ServerTimeResponse(
        unknown=unknown,
        time=datetime.fromtimestamp(timestamp, tz=timezone.utc),
    )


@dataclass(frozen=True)
class GameAuthResponse:
    """AuthRequest 的响应记录。

    已知字段与不透明块 (unknown_block*) 交错排列。不透明块原样保存，不做解释；
    其长度是与客户端版本绑定的经验偏移量。
    """

    header: bytes
    unknown_block1: bytes
    game_server: str
    chat_server: str
    unknown_block2: bytes
    privacy_policy_url: str
    unknown_block3: bytes
    support_request_en_url: str
    support_request_ru_url: str
    unknown_block4: bytes
    fourth_code_piece: str
    unknown_block5: bytes
    support_request_en_dup_url: str
    support_request_ru_dup_url: str
    code1: str
    unknown_block6: bytes
    teletype_ru_url: str
    teletype_en_url: str
    unknown_block7: bytes
    special_offer: str
    unknown_block8: bytes
    claim_en: str
    unknown_block9: bytes
    claim_de: str
    claim_pl: str
    unknown_block10: bytes
    offer_tiers: str
    offer_tiers_numbers: str
    code2: str
    unknown_block11: bytes
    shopping_google_play: str
    unknown_block12: bytes
    official_shop: str
    unknown_block13: bytes
    teletype_en_dup1_url: str
    teletype_en_dup2_url: str
    unknown_block14: bytes
    code3: str
    unknown_block15: bytes
    json: Any

    def opaque_blocks(self) -> list[bytes]:
        """按线上顺序返回全部不透明块。"""
        return [
            getattr(self, f.name)
            for f in fields(self)
            if f.name.startswith("unknown_block")
        ]


# 每一项: (字段名, 读取方式)。int 为固定长度的不透明块，str 为字符串变体名。
# 顺序即线上顺序，任一字段消费错误都会使后续全部偏移失效。
AUTH_RESPONSE_LAYOUT: list[tuple[str, int | str]] = [
    ("game_server", "a"),
    ("chat_server", "a"),
    ("unknown_block2", 42),
    ("privacy_policy_url", "a"),
    ("unknown_block3", 35),
    ("support_request_en_url", "b"),
    ("support_request_ru_url", "b"),
    ("unknown_block4", 53),
    ("fourth_code_piece", "a"),
    ("unknown_block5", 28),
    ("support_request_en_dup_url", "c"),
    ("support_request_ru_dup_url", "b"),
    ("code1", "a"),
    ("unknown_block6", 9),
    ("teletype_ru_url", "a"),
    ("teletype_en_url", "a"),
    ("unknown_block7", 62),
    ("special_offer", "a"),
    ("unknown_block8", 30),
    ("claim_en", "a"),
    ("unknown_block9", 22),
    ("claim_de", "b"),
    ("claim_pl", "a"),
    ("unknown_block10", 3),
    ("offer_tiers", "a"),
    ("offer_tiers_numbers", "b"),
    ("code2", "a"),
    ("unknown_block11", 123),
    ("shopping_google_play", "b"),
    ("unknown_block12", 30),
    ("official_shop", "a"),
    ("unknown_block13", 10),
    ("teletype_en_dup1_url", "b"),
    ("teletype_en_dup2_url", "b"),
    ("unknown_block14", 4),
    ("code3", "a"),
    ("unknown_block15", 8),
    ("json", "d"),
]


def parse_auth_response(data: bytes) -> GameAuthResponse:
    """严格按顺序解析 AuthRequest 响应。

    结构: 6 字节头 + 1 字节长度 + 不透明块1，随后按 AUTH_RESPONSE_LAYOUT 逐项读取，
    最后一个字段 (变体 d) 为 JSON 文档。

    Raises:
        DataFormatError: 任一字段越界、长度为负或 JSON 无法解析。
    """
    buf = GameBuffer(data)
    values: dict[str, Any] = {}

    values["header"] = buf.read_bytes(constants.AUTH_RESPONSE_HEADER_LEN)
    block1_size = buf.read_byte()
    values["unknown_block1"] = buf.read_bytes(block1_size)

    readers = {
        "a": buf.read_string_a,
        "b": buf.read_string_b,
        "c": buf.read_string_c,
        "d": buf.read_string_d,
    }
    for name, kind in AUTH_RESPONSE_LAYOUT:
        if isinstance(kind, int):
            values[name] = buf.read_bytes(kind)
        else:
            values[name] = readers[kind]()

    try:
        values["json"] = json.loads(values["json"])
    except json.JSONDecodeError as e:
        raise DataFormatError(data, f"JSON 解析失败: {e}") from e

    if buf.remaining:
        logger.debug(f"AuthResponse 末尾有 {buf.remaining} 字节未解析")

    logger.debug(
        "auth_response: game_server=%s chat_server=%s",
        values["game_server"],
        values["chat_server"],
    )
    return GameAuthResponse(**values)


@dataclass(frozen=True)
class AuthChallengeResponse:
    """Challenge 应答的响应。握手载荷不在本库范围内，原样保存。"""

    raw: bytes


def parse_auth_challenge_response(data: bytes) -> AuthChallengeResponse:
    return AuthChallengeResponse(raw=data)
