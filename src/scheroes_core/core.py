# File: src/scheroes_core/core.py
"""
SC Heroes 核心引擎 (Core Engine)

职责：
1. 资源组装：Config + Network + Session。
2. 生命周期：连接聊天 -> 后台接收线程 -> 停止；游戏 API 认证流程。
3. 事件系统：向上层广播会话状态变更。
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

import httpx

from .config import ScHeroesConfig
from .exceptions import ConfigError, ScHeroesError, StateError
from .network import ChatConnection, GameHttpClient
from .protocols.chat.packets import ChatMessage
from .protocols.chat.session import ChatSession, MessageCallback
from .protocols.game.packets import GameAuthResponse
from .protocols.game.session import GameSession
from .state import SessionStatus

logger = logging.getLogger(__name__)

StatusCallback = Callable[[SessionStatus, str], Any]

RECEIVER_THREAD_NAME = "ScHeroesChatReceiver"


class ScHeroesCore:
    """SC Heroes 客户端核心引擎。"""

    def __init__(
        self,
        config: ScHeroesConfig,
        status_callback: StatusCallback | None = None,
        chat_transport: ChatConnection | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """初始化核心引擎。

        Args:
            config: 全局配置对象。
            status_callback: 初始状态回调，也可稍后用 add_listener 注册。
            chat_transport: 自定义聊天连接 (测试用)，默认按配置新建 ChatConnection。
            http_transport: 自定义 httpx 传输 (测试用)。
        """
        self.config = config

        self._listeners: list[StatusCallback] = []
        if status_callback:
            self.add_listener(status_callback)

        try:
            self.chat_connection = chat_transport or ChatConnection(
                config.chat_host, config.chat_port
            )
            self.http_client = GameHttpClient(
                config.api_host,
                config.api_port,
                user_agent=config.user_agent,
                os_header=config.os_header,
                timeout=config.http_timeout,
                transport=http_transport,
            )
        except Exception as e:
            raise ConfigError(f"组件初始化失败: {e}") from e

        self.chat = ChatSession(
            self.chat_connection,
            version=config.chat_version,
            poll_interval=config.poll_interval,
            keep_alive_interval=config.keep_alive_interval,
        )
        self.game = GameSession(
            self.http_client, uid=config.uid, version=config.api_version
        )

        self._receiver: threading.Thread | None = None
        self.receiver_error: ScHeroesError | None = None

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # 聊天
    # ------------------------------------------------------------------

    def connect_chat(self) -> None:
        """连接聊天服务器，加入配置中的语言频道 (以及公会频道)。"""
        self.chat.open()
        self.chat.join(self.config.uid, self.config.language)
        if self.config.clan_id:
            self.chat.join_clan(self.config.clan_id)
        self._notify(self.chat.status, f"已加入聊天频道 [{self.config.language}]")

    def start_chat(self, on_message: MessageCallback) -> None:
        """在独立守护线程中运行聊天接收循环。

        on_message 在接收线程上被同步调用。
        """
        if self._receiver and self._receiver.is_alive():
            raise StateError("接收线程已在运行")
        if self.chat_connection.closed:
            raise StateError("无法启动接收线程：聊天连接未打开")

        self.receiver_error = None
        self._receiver = threading.Thread(
            target=self._receive, args=(on_message,), name=RECEIVER_THREAD_NAME, daemon=True
        )
        self._receiver.start()

    @property
    def receiving(self) -> bool:
        return self._receiver is not None and self._receiver.is_alive()

    def _receive(self, on_message: Callable[[ChatMessage], None]) -> None:
        """[Internal] 接收线程入口。"""
        try:
            self.chat.receive_loop(on_message)
        except ScHeroesError as e:
            # 线程边界: 记录错误供主线程查询，状态已由会话置为 ERROR
            self.receiver_error = e
            logger.error(f"聊天接收线程异常退出: {e}")
        self._notify(self.chat.status, "聊天接收线程已退出")

    # ------------------------------------------------------------------
    # 游戏 API
    # ------------------------------------------------------------------

    def authenticate(self) -> GameAuthResponse:
        """执行 AuthRequest + AuthChallangeResponse 两步认证。"""
        response = self.game.auth_request()
        self._notify(self.game.status, "AuthRequest 完成")
        self.game.auth_challenge_response()
        self._notify(self.game.status, "认证完成")
        return response

    # ------------------------------------------------------------------
    # 停止
    # ------------------------------------------------------------------

    def stop(self, timeout: float | None = None) -> None:
        """停止接收线程并关闭所有传输层。"""
        self.chat.stop()
        if self._receiver and self._receiver.is_alive():
            wait = timeout if timeout is not None else self.config.poll_interval * 2
            self._receiver.join(wait)
            if self._receiver.is_alive():
                logger.warning("接收线程未在限定时间内退出，强制关闭连接")
        self.chat.close()
        if self._receiver:
            self._receiver.join(timeout)
            self._receiver = None
        self.game.close()
        self._notify(SessionStatus.DISCONNECTED, "已停止")

    def _notify(self, status: SessionStatus, msg: str) -> None:
        """同步通知所有监听器。"""
        logger.info(f"[{status.name}] {msg}")
        for callback in self._listeners:
            try:
                callback(status, msg)
            except Exception as e:
                logger.error(f"回调执行异常: {e}")
