"""SC Heroes 游戏 API 协议。"""

from .packets import (
    AuthChallengeResponse,
    GameAuthResponse,
    GameBuffer,
    GameRequest,
    ServerTimeResponse,
)
from .session import GameSession

__all__ = [
    "AuthChallengeResponse",
    "GameAuthResponse",
    "GameBuffer",
    "GameRequest",
    "GameSession",
    "ServerTimeResponse",
]
