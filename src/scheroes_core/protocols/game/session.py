# File: src/scheroes_core/protocols/game/session.py
"""
SC Heroes 游戏 API 会话 (Game Session)

职责：
1. 请求/响应配对：GetServerTime、AuthRequest、AuthChallangeResponse。
2. 计算 x-DL 头 (载荷长度，不含 uid/版本号尾部与首个操作码)。
3. 状态流转：CONNECTED -> AUTH_IN_PROGRESS -> AUTHENTICATED。

注意: 所有请求都没有请求级超时 (除非配置了 http_timeout)，
服务器不响应时调用方会一直阻塞。
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from ...exceptions import DataFormatError, ScHeroesError
from ...state import GameState, SessionStatus
from ..base import BaseSession
from . import constants, packets

if TYPE_CHECKING:
    from ...network import GameHttpClient

T = TypeVar("T")


class GameSession(BaseSession):
    """游戏 API 协议会话。"""

    def __init__(
        self,
        transport: "GameHttpClient",
        uid: int,
        version: str = constants.CLIENT_VERSION,
        state: GameState | None = None,
    ) -> None:
        """初始化游戏 API 会话。

        Args:
            transport: HTTP 客户端 (需提供 post(path, data, dl=None))。
            uid: 玩家 UID。
            version: 客户端版本号，随每个请求的尾部发送。
            state: 共享状态对象，默认新建。
        """
        super().__init__(transport, state or GameState())
        self.uid = uid
        self.version = version
        self._update_status(SessionStatus.CONNECTED, "HTTP 客户端已就绪")

    def close(self) -> None:
        self.transport.close()
        self._update_status(SessionStatus.DISCONNECTED, "HTTP 客户端已关闭")

    def server_time(self) -> packets.ServerTimeResponse:
        """获取服务器时间。"""
        request = packets.build_server_time_request(self.version)
        # GetServerTime 不携带 x-DL
        body = self._post(constants.PATH_SERVER_TIME, request.body, dl=None)
        response = self._decode(packets.parse_server_time_response, body)
        self.state.server_time = response.timestamp
        self.logger.debug(f"服务器时间: {response.time.isoformat()}")
        return response

    def auth_request(self, uid: int | None = None) -> packets.GameAuthResponse:
        """发起 AuthRequest，解析服务器返回的大型配置记录。"""
        uid = self.uid if uid is None else uid
        request = packets.build_auth_request(uid, self.version)
        self.state.last_dl = request.dl
        body = self._post(constants.PATH_AUTH_REQUEST, request.body, dl=request.dl)
        response = self._decode(packets.parse_auth_response, body)
        self._update_status(
            SessionStatus.AUTH_IN_PROGRESS,
            f"AuthRequest 完成 (game={response.game_server}, chat={response.chat_server})",
        )
        return response

    def auth_challenge_response(
        self, uid: int | None = None
    ) -> packets.AuthChallengeResponse:
        """发送 Challenge 应答。响应体不做解析。"""
        uid = self.uid if uid is None else uid
        request = packets.build_auth_challenge_request(uid, self.version)
        self.state.last_dl = request.dl
        body = self._post(
            constants.PATH_AUTH_CHALLENGE_RESPONSE, request.body, dl=request.dl
        )
        response = packets.parse_auth_challenge_response(body)
        self._update_status(SessionStatus.AUTHENTICATED, "Challenge 应答完成")
        return response

    def _post(self, path: str, body: bytes, dl: int | None) -> bytes:
        try:
            return self.transport.post(path, body, dl=dl)
        except ScHeroesError as e:
            self.state.last_error = str(e)
            self.logger.error(f"{path} 请求失败: {e}")
            raise

    def _decode(self, parser: Callable[[bytes], T], body: bytes) -> T:
        try:
            return parser(body)
        except DataFormatError as e:
            self._fail(e)
            raise
