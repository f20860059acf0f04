"""
SC Heroes 会话基类 (Base Session)

定义聊天会话与游戏 API 会话共享的状态流转与错误记录逻辑。
"""

import abc
import logging
from typing import Any

from ..state import ChatState, GameState, SessionStatus


class BaseSession(abc.ABC):
    """会话抽象基类。

    每个会话都是单线程状态机：持有一个传输层句柄与一个可变状态对象，
    把领域调用编码为字节，把字节解码为领域值。
    """

    def __init__(self, transport: Any, state: ChatState | GameState) -> None:
        """初始化会话基类。

        Args:
            transport: 传输层句柄 (ChatConnection / GameHttpClient)。
            state: 共享状态对象。
        """
        self.transport = transport
        self.state = state
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    def _update_status(self, status: SessionStatus, msg: str) -> None:
        """更新内部状态并记录日志。"""
        self.state.status = status
        self.logger.info(f"[{status.name}] {msg}")

    def _fail(self, error: Exception) -> None:
        """记录不可恢复的错误，会话进入 ERROR 状态。"""
        self.state.last_error = str(error)
        self._update_status(SessionStatus.ERROR, f"会话终止: {error}")

    @abc.abstractmethod
    def close(self) -> None:
        """[Abstract] 关闭传输层并清理本地状态。"""
        raise NotImplementedError
