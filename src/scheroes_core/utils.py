# File: src/scheroes_core/utils.py
"""
SC Heroes 核心库 - 通用算法工具箱

本模块汇集了协议族共用的小型编码算法。目前仅有聊天协议使用的 Varint。
"""

from collections.abc import Callable

from .exceptions import MalformedVarintError

# u32 最多需要 5 组 7 bit (35 bit)
VARINT_MAX_BYTES = 5
U32_MAX = 0xFFFFFFFF


def encode_varint(value: int) -> bytes:
    """将无符号整数编码为 Varint。

    算法逻辑:
    1. 每次取低 7 位，低位组在前。
    2. 除最后一个字节外，其余字节的最高位 (0x80) 置 1。

    Args:
        value: 0 ~ 0xFFFFFFFF 之间的整数。

    Returns:
        bytes: 编码结果，1~5 字节。

    Raises:
        ValueError: value 为负数或超出 u32 范围。
    """
    if value < 0 or value > U32_MAX:
        raise ValueError(f"Varint 超出 u32 范围: {value}")

    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value == 0:
            out.append(byte)
            return bytes(out)
        out.append(byte | 0x80)


def decode_varint(read_byte: Callable[[], int]) -> int:
    """从字节源中逐字节解码 Varint。

    最多读取 VARINT_MAX_BYTES 个字节。

    Args:
        read_byte: 每次调用返回一个字节 (0-255) 的函数。

    Returns:
        int: 解码后的整数。

    Raises:
        MalformedVarintError: 超过 5 个字节仍未遇到终止字节，或结果超出 u32 范围。
    """
    result = 0
    for i in range(VARINT_MAX_BYTES):
        byte = read_byte()
        result |= (byte & 0x7F) << (7 * i)
        if byte & 0x80 == 0:
            if result > U32_MAX:
                raise MalformedVarintError(f"Varint 超出 u32 范围: {result}")
            return result
    raise MalformedVarintError(f"Varint 超过 {VARINT_MAX_BYTES} 字节仍未结束")
