# tests/helpers.py
"""
测试辅助: 模拟传输层、可控时钟与报文构造函数。
"""

import struct

from scheroes_core.exceptions import TransportClosedError
from scheroes_core.protocols.game import constants as game_constants


class FakeClock:
    """可手动推进的单调时钟。"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeChatTransport:
    """
    模拟聊天 TCP 连接。

    - incoming: 预置的服务器字节流，读完后 wait_readable 抛出 TransportClosedError
      (eof_when_empty=True) 或一直返回 False。
    - on_wait: 每次 wait_readable 时的钩子，可用来推进时钟或调用 stop()。
    """

    def __init__(self, incoming: bytes = b"", eof_when_empty: bool = True, on_wait=None):
        self.buffer = bytearray(incoming)
        self.eof_when_empty = eof_when_empty
        self.on_wait = on_wait
        self.written: list[bytes] = []
        self.wait_calls = 0
        self.closed = False
        self.connect_calls = 0

    def connect(self) -> None:
        self.connect_calls += 1
        self.closed = False

    def feed(self, data: bytes) -> None:
        self.buffer.extend(data)

    def wait_readable(self, timeout: float) -> bool:
        self.wait_calls += 1
        if self.on_wait:
            self.on_wait(self)
        if self.closed:
            raise TransportClosedError("fake closed")
        if self.buffer:
            return True
        if self.eof_when_empty:
            raise TransportClosedError("fake eof")
        return False

    def read_exact(self, n: int) -> bytes:
        if len(self.buffer) < n:
            raise TransportClosedError(f"fake eof ({len(self.buffer)}/{n})")
        data = bytes(self.buffer[:n])
        del self.buffer[:n]
        return data

    def write(self, data: bytes) -> None:
        if self.closed:
            raise TransportClosedError("fake closed")
        self.written.append(data)

    def close(self) -> None:
        self.closed = True


# ============================================================================
# 报文构造辅助
# ============================================================================


def chat_string(text: str) -> bytes:
    """Varint 长度前缀 (单字节足够) + UTF-8。"""
    data = text.encode("utf-8")
    assert len(data) < 0x80
    return bytes([len(data)]) + data


def chat_message_bytes(
    uid: int = 7,
    name: str = "Ann",
    title: int = 71087,
    info: str = "",
    text: str = "hi",
    timestamp: int = 1700000000,
    packet_id: int = 0x03,
) -> bytes:
    return (
        bytes([packet_id])
        + struct.pack("<I", uid)
        + chat_string(name)
        + struct.pack("<I", title)
        + chat_string(info)
        + chat_string(text)
        + struct.pack("<I", timestamp)
    )


def game_string(text: str, variant: str) -> bytes:
    """按变体编码一个游戏 API 字符串 (测试用的反向实现)。"""
    overhead, padding = game_constants.STRING_VARIANTS[variant]
    payload = text.encode("utf-16-le")
    length = len(payload) + overhead
    if length < 0x80 and not length & 0x02:
        head = bytes([length])
    else:
        head = b"\x80" + struct.pack("<H", length)
    return head + payload + b"\x00" * padding


