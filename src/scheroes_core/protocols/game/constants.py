# src/scheroes_core/protocols/game/constants.py
"""
SC Heroes 游戏 API 协议常量表 (Constants)

仅定义协议的结构性常量（接口路径、魔数、字符串变体、不透明块长度）。

注意: AuthResponse 中各不透明块的长度是经验值，与 CLIENT_VERSION 绑定。
一旦版本号变化，需要重新核对整个 AuthResponse 的字段偏移。
"""

# =========================================================================
# 服务器与客户端标识
# =========================================================================
DEFAULT_HOST = "game.star-thunder.com"
DEFAULT_PORT = 1337
CLIENT_VERSION = "1.7.82.30601"

USER_AGENT = "BestHTTP/2 v2.5.2"
OS_HEADER_VALUE = "2"

# =========================================================================
# 接口路径
# =========================================================================
INFO_SERVICE = "/InfoService"
AUTH_SERVICE = "/AuthService"

PATH_SERVER_TIME = INFO_SERVICE + "/GetServerTime"
PATH_AUTH_REQUEST = AUTH_SERVICE + "/AuthRequest"
# 服务器真实路径中的拼写错误 (Challange)，必须保留
PATH_AUTH_CHALLENGE_RESPONSE = AUTH_SERVICE + "/AuthChallangeResponse"

# =========================================================================
# 请求结构
# =========================================================================
SERVER_TIME_OPCODE = b"\x00"
AUTH_MAGIC = bytes([0x06, 0x00, 0x00, 0x00, 0x01, 0x01, 0x03])
ANONYMOUS_UID = 0xFFFFFFFF  # GetServerTime 的 uid 占位

# dl = 总长度 - 尾部长度 - 首个操作码字节
DL_OPCODE_LEN = 1

# =========================================================================
# 字符串变体: 名称 -> (长度开销, 尾部填充字节数)
# =========================================================================
STRING_VARIANTS = {
    "a": (3, 3),
    "b": (3, 2),
    "c": (3, 1),
    "d": (4, 3),
}

# 类型字节的这两位之一置位时，长度为随后的 2 字节小端整数
FLAG_LONG_LENGTH_HIGH = 0x80
FLAG_LONG_LENGTH_BIT1 = 0x02

# =========================================================================
# 响应结构
# =========================================================================
SERVER_TIME_UNKNOWN_LEN = 3
AUTH_RESPONSE_HEADER_LEN = 6
