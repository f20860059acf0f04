# File: src/scheroes_core/protocols/chat/session.py
"""
SC Heroes 聊天会话 (Chat Session)

职责：
1. 指令编码：join / join_clan / change_language / say / clan_say，发送即返回，不等待响应。
2. 接收循环：轮询可读性、空闲保活、按判别字节解码并把消息交给回调。
3. 并发安全：命令方法与接收循环运行在不同线程上，写操作统一经过写锁，
   保证一个命令的字节不会与另一个命令或保活包交错。
"""

import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...exceptions import ProtocolError, StateError, TransportClosedError
from ...state import ChatState, SessionStatus
from ..base import BaseSession
from . import constants, registry
from .packets import (
    AuthRequestPacket,
    AuthResponsePacket,
    ChangeLanguagePacket,
    ChatMessage,
    ChatPacket,
    ClanMessagePacket,
    JoinClanPacket,
    JoinPacket,
    MessagePacket,
    PacketReader,
    StatusRequestPacket,
    StatusResponsePacket,
)

if TYPE_CHECKING:
    from ...network import ChatConnection

MessageCallback = Callable[[ChatMessage], None]


class ChatSession(BaseSession):
    """聊天协议会话。"""

    def __init__(
        self,
        transport: "ChatConnection",
        version: int = constants.PROTOCOL_VERSION,
        poll_interval: float = constants.POLL_INTERVAL,
        keep_alive_interval: float = constants.KEEP_ALIVE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        state: ChatState | None = None,
    ) -> None:
        """初始化聊天会话。

        Args:
            transport: 聊天 TCP 连接 (需提供 wait_readable/read_exact/write/close)。
            version: Join/ChangeLanguage 包中携带的协议版本号。
            poll_interval: 每次可读性轮询的最长等待 (秒)。
            keep_alive_interval: 空闲多久发送一次 StatusRequest (秒)。
            clock: 单调时钟，测试时可替换。
            state: 共享状态对象，默认新建。
        """
        super().__init__(transport, state or ChatState())
        self.version = version
        self.poll_interval = poll_interval
        self.keep_alive_interval = keep_alive_interval
        self._clock = clock

        self._reader = PacketReader(transport.read_exact)
        self._write_lock = threading.Lock()
        self._read_lock = threading.Lock()
        self._stop_event = threading.Event()

        if not transport.closed:
            self._update_status(SessionStatus.CONNECTED, "聊天连接已就绪")

    @property
    def online_users(self) -> int:
        return self.state.online_users

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def open(self) -> None:
        """打开传输层 (若尚未打开)。"""
        if self.transport.closed:
            self.transport.connect()
        self._stop_event.clear()
        self._update_status(SessionStatus.CONNECTED, "聊天连接已就绪")

    def stop(self) -> None:
        """请求接收循环在下一次轮询时退出。"""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def close(self) -> None:
        self.stop()
        self.transport.close()
        self._update_status(SessionStatus.DISCONNECTED, "聊天连接已关闭")

    # ------------------------------------------------------------------
    # 指令 (发送即返回)
    # ------------------------------------------------------------------

    def join(self, uid: int, language: str) -> None:
        """加入指定语言的聊天频道。"""
        self._send(JoinPacket(version=self.version, uid=uid, language=language))
        self._update_status(SessionStatus.JOINED, f"已加入频道 [{language}]")

    def join_clan(self, clan_id: int) -> None:
        """加入公会频道。"""
        self._send(JoinClanPacket(cid=clan_id))
        self.logger.info(f"已加入公会频道 (cid={clan_id})")

    def change_language(self, uid: int, language: str) -> None:
        """切换频道语言。"""
        self._send(
            ChangeLanguagePacket(version=self.version, uid=uid, language=language)
        )
        self.logger.info(f"频道语言已切换为 [{language}]")

    def say(self, text: str) -> None:
        self._send(MessagePacket(text=text))

    def clan_say(self, text: str) -> None:
        self._send(ClanMessagePacket(text=text))

    def update_status(self) -> None:
        """发送 StatusRequest，刷新在线人数并兼作保活。"""
        self._send(StatusRequestPacket())
        self.state.last_keep_alive = self._clock()

    def send_auth_response(self, key: bytes) -> None:
        """发送密钥应答。

        握手密码学不在本库范围内，key 须由调用方自行计算。
        """
        self._send(AuthResponsePacket(key=key))

    def _send(self, packet: ChatPacket) -> None:
        data = packet.encode()
        with self._write_lock:
            self.transport.write(data)
        self.logger.debug(f"发送 {type(packet).__name__}: {data.hex()}")

    # ------------------------------------------------------------------
    # 接收循环
    # ------------------------------------------------------------------

    def receive_loop(self, on_message: MessageCallback) -> None:
        """阻塞式接收循环，建议运行在独立线程中。

        退出条件:
        1. stop() 被调用 (下一次轮询时检查)。
        2. 传输层关闭 (TransportClosedError)，视为正常退出。
        3. 不可恢复的解码错误 (UnknownPacketError 等)，会话进入 ERROR 并向上抛出。

        Args:
            on_message: 每条频道/公会消息都会在本线程上同步调用此回调；
                回调阻塞则循环阻塞。
        """
        if self.transport.closed:
            raise StateError("无法启动接收循环：聊天连接未打开")

        self.state.last_keep_alive = self._clock()
        self.logger.debug("接收循环已启动")

        try:
            while not self._stop_event.is_set():
                if not self.transport.wait_readable(self.poll_interval):
                    self._keep_alive_if_idle()
                    continue

                with self._read_lock:
                    packet = registry.read_packet(self._reader)
                self._handle_packet(packet, on_message)

        except TransportClosedError as e:
            if self.state.status != SessionStatus.ERROR:
                self._update_status(SessionStatus.DISCONNECTED, f"连接已关闭: {e}")
            return

        except ProtocolError as e:
            self.logger.error(f"聊天字节流已失步，接收循环终止: {e}")
            self._fail(e)
            raise

        self.logger.debug("接收循环已停止")

    def _keep_alive_if_idle(self) -> None:
        elapsed = self._clock() - self.state.last_keep_alive
        if elapsed >= self.keep_alive_interval:
            self.logger.debug(f"空闲 {elapsed:.1f}s，发送 StatusRequest 保活")
            self.update_status()

    def _handle_packet(self, packet: ChatPacket, on_message: MessageCallback) -> None:
        if isinstance(packet, (MessagePacket, ClanMessagePacket)):
            if packet.message is not None:
                on_message(packet.message)

        elif isinstance(packet, StatusResponsePacket):
            self.state.online_users = packet.online_users
            self.logger.debug(f"在线人数: {packet.online_users}")

        elif isinstance(packet, AuthRequestPacket):
            # TODO: 实现 AuthResponse 的密钥计算后，在此处调用 send_auth_response
            self.state.auth_request_key = packet.key
            self.logger.info(f"收到 AuthRequest 密钥 ({len(packet.key)} bytes)，暂不应答")

        else:
            self.logger.debug(f"忽略仅客户端发送的包: {type(packet).__name__}")
