# File: src/scheroes_core/state.py
"""
SC Heroes 核心库 - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含业务逻辑，仅作为数据容器供 Core 和 Session 共享读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class SessionStatus(Enum):
    """会话的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTED -> JOINED                              (聊天)
    DISCONNECTED -> CONNECTED -> AUTH_IN_PROGRESS -> AUTHENTICATED   (游戏 API)
                        |               |                 |
                        v               v                 v
                      ERROR           ERROR             ERROR
    """

    DISCONNECTED = auto()
    """初始状态，或连接已关闭。"""

    CONNECTED = auto()
    """传输层已就绪 (TCP 已连接 / HTTP 客户端已创建)。"""

    JOINED = auto()
    """已发送 Join 包，正在聊天频道中。"""

    AUTH_IN_PROGRESS = auto()
    """已完成 AuthRequest，等待 Challenge 应答。"""

    AUTHENTICATED = auto()
    """Challenge 应答已完成。"""

    ERROR = auto()
    """错误状态。发生了不可恢复的解码错误，会话必须丢弃。"""


@dataclass
class ChatState:
    """存储聊天会话的易变状态数据。

    Attributes:
        status: 当前会话状态。
        online_users: 服务器最近一次 StatusResponse 报告的在线人数。
        last_keep_alive: 最近一次发送 StatusRequest 的时钟读数 (秒)。
        auth_request_key: 服务器下发的 AuthRequest 密钥 (不透明，不做处理)。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
    """

    status: SessionStatus = SessionStatus.DISCONNECTED
    online_users: int = 0
    last_keep_alive: float = 0.0
    auth_request_key: bytes = b""
    last_error: str = ""

    @property
    def is_joined(self) -> bool:
        return self.status == SessionStatus.JOINED


@dataclass
class GameState:
    """存储游戏 API 会话的易变状态数据。

    Attributes:
        status: 当前会话状态。
        server_time: 最近一次获取到的服务器时间 (Unix 时间戳)。
        last_dl: 最近一次请求计算出的 x-DL 值。
        last_error: 最近一次发生的错误信息描述。
    """

    status: SessionStatus = SessionStatus.DISCONNECTED
    server_time: int = 0
    last_dl: int | None = None
    last_error: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED
