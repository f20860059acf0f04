# src/scheroes_core/__init__.py
"""
SC Heroes Core v1.0.0
SC Heroes 聊天协议与游戏 API 协议的客户端核心库。
"""

# 暴露核心配置
from .config import (
    ScHeroesConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露引擎与会话
from .core import ScHeroesCore

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    ConfigError,
    DataFormatError,
    EmptyResponseError,
    MalformedVarintError,
    NetworkError,
    ProtocolError,
    ScHeroesError,
    StateError,
    TransportClosedError,
    UnknownPacketError,
)
from .network import ChatConnection, GameHttpClient
from .protocols.chat import ChatMessage, ChatSession
from .protocols.game import GameAuthResponse, GameSession
from .state import ChatState, GameState, SessionStatus

__version__ = "1.0.0"

__all__ = [
    "ScHeroesCore",
    "ScHeroesConfig",
    "ChatConnection",
    "GameHttpClient",
    "ChatSession",
    "GameSession",
    "ChatMessage",
    "GameAuthResponse",
    "ChatState",
    "GameState",
    "SessionStatus",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "ScHeroesError",
    "ConfigError",
    "NetworkError",
    "TransportClosedError",
    "ProtocolError",
    "MalformedVarintError",
    "UnknownPacketError",
    "DataFormatError",
    "EmptyResponseError",
    "StateError",
]
