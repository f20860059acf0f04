"""
SC Heroes 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .exceptions import ConfigError
from .protocols.chat import constants as chat_constants
from .protocols.game import constants as game_constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScHeroesConfig:
    """ScHeroesCore 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        uid: 玩家 UID。
        language: 聊天频道语言代码 (ru/en/de/fr/pl/ua)。
        clan_id: 公会 ID，0 表示不加入公会频道。
        chat_host: 聊天服务器地址。
        chat_port: 聊天服务器端口。
        chat_version: 聊天协议版本号 (Join/ChangeLanguage 包中携带)。
        api_host: 游戏 API 服务器地址。
        api_port: 游戏 API 服务器端口。
        api_version: 游戏客户端版本字符串 (请求尾部携带)。
        user_agent: HTTP User-Agent 头。
        os_header: x-OS 头的值。
        poll_interval: 接收循环的可读性轮询间隔 (秒)。
        keep_alive_interval: 空闲多久后发送 StatusRequest 保活 (秒)。
        http_timeout: HTTP 请求超时 (秒)，None 表示无限等待。
    """

    # --- 1. 身份 ---
    uid: int
    language: str
    clan_id: int

    # --- 2. 聊天服务器 ---
    chat_host: str
    chat_port: int
    chat_version: int

    # --- 3. 游戏 API ---
    api_host: str
    api_port: int
    api_version: str
    user_agent: str
    os_header: str

    # --- 4. 时序 ---
    poll_interval: float
    keep_alive_interval: float
    http_timeout: float | None

    def __repr__(self) -> str:
        """隐藏 UID 的安全字符串表示，防止日志泄露玩家身份。"""
        return (
            f"<{self.__class__.__name__} "
            f"chat={self.chat_host}:{self.chat_port}, "
            f"api={self.api_host}:{self.api_port}, "
            f"uid='******', "
            f"language='{self.language}', "
            f"version={self.api_version}>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> ScHeroesConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        ScHeroesConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:

        def _req(key: str) -> Any:
            """获取必要字段，缺失则报错"""
            if key not in raw_data:
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _get(key: str, default: Any) -> Any:
            return raw_data.get(key, default)

        def _to_u32(key: str, value: Any) -> int:
            """整数字段，同时接受 "0x" 前缀的十六进制字符串。"""
            try:
                num = int(value, 0) if isinstance(value, str) else int(value)
            except (TypeError, ValueError):
                raise ConfigError(f"整数格式无效 '{key}': {value}")
            if not 0 <= num <= 0xFFFFFFFF:
                raise ConfigError(f"'{key}' 超出 u32 范围: {num}")
            return num

        def _to_port(key: str, default: int) -> int:
            port = _to_u32(key, _get(key, default))
            if not 0 < port < 65536:
                raise ConfigError(f"端口无效 '{key}': {port}")
            return port

        def _to_seconds(key: str, default: float | None) -> float | None:
            val = _get(key, default)
            if val is None or val == "":
                return None
            try:
                seconds = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"时间格式无效 '{key}': {val}")
            if seconds <= 0:
                raise ConfigError(f"'{key}' 必须大于 0: {seconds}")
            return seconds

        language = str(_get("language", chat_constants.LANGUAGE_EN)).lower()
        if language not in chat_constants.LANGUAGES:
            raise ConfigError(f"不支持的语言: {language}")

        return ScHeroesConfig(
            # 身份
            uid=_to_u32("uid", _req("uid")),
            language=language,
            clan_id=_to_u32("clan_id", _get("clan_id", 0)),
            # 聊天
            chat_host=str(_get("chat_host", chat_constants.DEFAULT_HOST)),
            chat_port=_to_port("chat_port", chat_constants.DEFAULT_PORT),
            chat_version=_to_u32(
                "chat_version", _get("chat_version", chat_constants.PROTOCOL_VERSION)
            ),
            # 游戏 API
            api_host=str(_get("api_host", game_constants.DEFAULT_HOST)),
            api_port=_to_port("api_port", game_constants.DEFAULT_PORT),
            api_version=str(_get("api_version", game_constants.CLIENT_VERSION)),
            user_agent=str(_get("user_agent", game_constants.USER_AGENT)),
            os_header=str(_get("os_header", game_constants.OS_HEADER_VALUE)),
            # 时序
            poll_interval=_to_seconds("poll_interval", chat_constants.POLL_INTERVAL),
            keep_alive_interval=_to_seconds(
                "keep_alive_interval", chat_constants.KEEP_ALIVE_INTERVAL
            ),
            http_timeout=_to_seconds("http_timeout", None),
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> ScHeroesConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [scheroes]: 单一配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        ScHeroesConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]
    elif "scheroes" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [scheroes] 节，忽略 profile='{profile}'。")
        raw_config = data["scheroes"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


# 字段映射表 (Config Field -> Env Suffix)
ENV_MAP = {
    "uid": "UID",
    "language": "LANGUAGE",
    "clan_id": "CLAN_ID",
    "chat_host": "CHAT_HOST",
    "chat_port": "CHAT_PORT",
    "chat_version": "CHAT_VERSION",
    "api_host": "API_HOST",
    "api_port": "API_PORT",
    "api_version": "API_VERSION",
    "user_agent": "USER_AGENT",
    "os_header": "OS_HEADER",
    "poll_interval": "POLL_INTERVAL",
    "keep_alive_interval": "KEEP_ALIVE_INTERVAL",
    "http_timeout": "HTTP_TIMEOUT",
}


def load_config_from_env(dotenv_path: Path | None = None) -> ScHeroesConfig:
    """从环境变量加载配置。

    自动读取所有以 `SCHEROES_` 开头的环境变量，并映射到配置字段。
    例如: `SCHEROES_UID` -> `uid`。
    若给出 dotenv_path，则先用 python-dotenv 将该文件载入环境 (不覆盖已有变量)。

    Args:
        dotenv_path: 可选的 .env 文件路径。

    Returns:
        ScHeroesConfig: 配置对象。

    Raises:
        ConfigError: .env 文件不存在，或未检测到任何相关环境变量。
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise ConfigError(f".env 文件未找到: {dotenv_path}")
        load_dotenv(dotenv_path=dotenv_path, override=False)

    raw_data = {}
    for cfg_key, env_suffix in ENV_MAP.items():
        val = os.environ.get(f"SCHEROES_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 SCHEROES_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
