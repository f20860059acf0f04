# src/scheroes_core/protocols/chat/constants.py
"""
SC Heroes 聊天协议常量表 (Constants)

仅定义协议的结构性常量（包类型字节、默认服务器、时序）。
"""

from enum import IntEnum


# =========================================================================
# 包类型 (Discriminator Bytes)
# =========================================================================
class PacketId(IntEnum):
    """聊天包首字节 (判别字节) 定义"""

    JOIN = 0x01  # 加入频道 (Client -> Server)
    MESSAGE = 0x03  # 频道消息 (双向)
    STATUS_RESPONSE = 0x06  # 服务器状态 (Server -> Client)
    CHANGE_LANGUAGE = 0x07  # 切换语言频道 (Client -> Server)
    STATUS_REQUEST = 0x08  # 状态请求/保活 (Client -> Server)
    JOIN_CLAN = 0x0B  # 加入公会频道 (Client -> Server)
    CLAN_MESSAGE = 0x0C  # 公会消息 (双向)
    AUTH_REQUEST = 0x0E  # 密钥下发 (Server -> Client)
    AUTH_RESPONSE = 0x0F  # 密钥应答 (Client -> Server，本客户端未使用)


# =========================================================================
# 服务器与协议版本
# =========================================================================
DEFAULT_HOST = "game.star-thunder.com"
DEFAULT_PORT = 2001
PROTOCOL_VERSION = 1

# ChangeLanguage 包末尾的保留字段
CHANGE_LANGUAGE_RESERVED = 0

# =========================================================================
# 频道语言
# =========================================================================
LANGUAGE_RU = "ru"
LANGUAGE_EN = "en"
LANGUAGE_DE = "de"
LANGUAGE_FR = "fr"
LANGUAGE_PL = "pl"
LANGUAGE_UA = "ua"

LANGUAGES = (
    LANGUAGE_RU,
    LANGUAGE_EN,
    LANGUAGE_DE,
    LANGUAGE_FR,
    LANGUAGE_PL,
    LANGUAGE_UA,
)

# =========================================================================
# 时序 (秒)
# =========================================================================
POLL_INTERVAL = 1.0  # 可读性轮询的最长等待
KEEP_ALIVE_INTERVAL = 60.0  # 空闲多久发送一次 StatusRequest
