# src/scheroes_core/network.py
"""
SC Heroes 核心库 - 网络模块 (Network)

封装两种传输层:
- ChatConnection: 聊天服务器的持久 TCP 字节流 (带有限时可读性轮询)。
- GameHttpClient: 游戏 API 的 HTTP POST 客户端 (基于 httpx)。

该模块屏蔽了底层 Socket / HTTP 的复杂性，向会话层提供纯粹的 bytes 收发接口。
"""

import logging
import select
import socket

import httpx

from .exceptions import EmptyResponseError, NetworkError, TransportClosedError

logger = logging.getLogger(__name__)

# 单次 recv 的上限，长度字段由对端声明，不能据此一次性分配
RECV_CHUNK_SIZE = 65536


class ChatConnection:
    """聊天服务器 TCP 连接。

    读写均为阻塞调用；wait_readable() 提供有界等待，供接收循环轮询使用。
    """

    def __init__(self, host: str, port: int, connect_timeout: float | None = 10.0):
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.sock: socket.socket | None = None

    @property
    def closed(self) -> bool:
        return self.sock is None

    def connect(self) -> None:
        """建立 TCP 连接。"""
        address = (self.host, self.port)
        try:
            self.sock = socket.create_connection(address, timeout=self.connect_timeout)
            # 连接建立后切回阻塞模式，读超时交给 wait_readable 控制
            self.sock.settimeout(None)
            logger.debug(f"聊天连接已建立: {address}")
        except OSError as e:
            self.sock = None
            raise NetworkError(f"连接聊天服务器失败 {address}: {e}") from e

    def wait_readable(self, timeout: float) -> bool:
        """等待至多 timeout 秒，返回是否有数据可读。"""
        sock = self._require_socket()
        try:
            readable, _, _ = select.select([sock], [], [], timeout)
        except (OSError, ValueError) as e:
            # 其他线程关闭 socket 后 select 会报错
            raise TransportClosedError(f"连接已关闭: {e}") from e
        return bool(readable)

    def read_exact(self, n: int) -> bytes:
        """严格读取 n 个字节。对端关闭连接时抛出 TransportClosedError。"""
        sock = self._require_socket()
        chunks = bytearray()
        while len(chunks) < n:
            try:
                chunk = sock.recv(min(n - len(chunks), RECV_CHUNK_SIZE))
            except OSError as e:
                raise TransportClosedError(f"接收失败: {e}") from e
            if not chunk:
                raise TransportClosedError(
                    f"对端关闭连接 (已读 {len(chunks)}/{n} 字节)"
                )
            chunks.extend(chunk)
        return bytes(chunks)

    def write(self, data: bytes) -> None:
        """一次性写出整个包。"""
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as e:
            raise TransportClosedError(f"发送失败: {e}") from e

    def close(self) -> None:
        """关闭连接。

        先 shutdown 再 close：其他线程中阻塞的 recv 会立即返回空数据，
        接收循环随之以 TransportClosedError 退出。
        """
        if self.sock is not None:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # 对端已断开或从未完成连接
                pass
            try:
                self.sock.close()
            finally:
                self.sock = None
                logger.debug("聊天连接已关闭")

    def _require_socket(self) -> socket.socket:
        if self.sock is None:
            raise TransportClosedError("连接未打开或已关闭")
        return self.sock

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class GameHttpClient:
    """游戏 API 的 HTTP 客户端。

    服务器要求头名大小写完全一致 (如 "x-OS" 而不是 "X-Os")。
    头部以 (name, value) 有序列表交给 httpx，httpx/h11 会按原样写出头名，
    不做任何规范化。

    注意: 默认不设超时 (http_timeout=None)，服务器无响应时调用会一直阻塞。
    """

    def __init__(
        self,
        host: str,
        port: int,
        user_agent: str,
        os_header: str,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.host = host
        self.port = port
        self.user_agent = user_agent
        self.os_header = os_header
        self._client = httpx.Client(
            base_url=f"http://{host}:{port}",
            timeout=timeout,
            transport=transport,
        )

    def build_headers(self, dl: int | None = None) -> list[tuple[str, str]]:
        """构造精确大小写的请求头列表。"""
        headers = [
            ("User-Agent", self.user_agent),
            ("x-OS", self.os_header),
        ]
        if dl is not None:
            headers.append(("x-DL", str(dl)))
        return headers

    def post(self, path: str, data: bytes = b"", dl: int | None = None) -> bytes:
        """发送 POST 请求并返回响应体。

        Raises:
            NetworkError: HTTP 传输失败。
            EmptyResponseError: 响应体为空。
        """
        headers = self.build_headers(dl)
        logger.debug(f"POST {path} ({len(data)} bytes, dl={dl}): {data.hex()}")
        try:
            response = self._client.post(path, content=data, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"请求失败 {path}: {e}") from e

        if response.status_code != 200:
            logger.warning(f"{path} 返回 HTTP {response.status_code}")

        body = response.content
        if not body:
            raise EmptyResponseError(path)
        logger.debug(f"{path} 响应 {len(body)} bytes")
        return body

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
