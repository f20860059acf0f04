# tests/test_network.py
"""
测试网络层:
1. ChatConnection 的精确读取、写出、可读性轮询与关闭语义 (基于 socketpair)。
2. GameHttpClient 的请求头构造与异常映射。
"""

import socket
import threading

import httpx
import pytest

from scheroes_core.exceptions import EmptyResponseError, NetworkError, TransportClosedError
from scheroes_core.network import RECV_CHUNK_SIZE, ChatConnection, GameHttpClient
from scheroes_core.protocols.chat.session import ChatSession
from scheroes_core.state import SessionStatus


@pytest.fixture
def conn_pair():
    """返回 (ChatConnection, 对端 socket)。"""
    local, remote = socket.socketpair()
    conn = ChatConnection("127.0.0.1", 2001)
    conn.sock = local
    yield conn, remote
    conn.close()
    remote.close()


# --- ChatConnection ---


def test_new_connection_is_closed():
    conn = ChatConnection("127.0.0.1", 2001)
    assert conn.closed
    with pytest.raises(TransportClosedError):
        conn.read_exact(1)
    with pytest.raises(TransportClosedError):
        conn.write(b"\x08")


def test_read_exact_collects_partial_chunks(conn_pair):
    conn, remote = conn_pair
    remote.sendall(b"\x01\x02")
    remote.sendall(b"\x03\x04\x05")
    assert conn.read_exact(4) == b"\x01\x02\x03\x04"
    assert conn.read_exact(1) == b"\x05"


def test_write_sends_whole_packet(conn_pair):
    conn, remote = conn_pair
    conn.write(b"\x03\x02hi")
    assert remote.recv(16) == b"\x03\x02hi"


def test_wait_readable(conn_pair):
    conn, remote = conn_pair
    assert conn.wait_readable(0.01) is False
    remote.sendall(b"\x08")
    assert conn.wait_readable(1.0) is True


def test_read_after_peer_close_raises(conn_pair):
    conn, remote = conn_pair
    remote.sendall(b"\x01")
    remote.close()
    with pytest.raises(TransportClosedError):
        conn.read_exact(2)


def test_close_is_idempotent(conn_pair):
    conn, _ = conn_pair
    conn.close()
    conn.close()
    assert conn.closed
    with pytest.raises(TransportClosedError):
        conn.wait_readable(0.01)


def test_close_wakes_reader_blocked_mid_packet(conn_pair, fake_clock):
    """对端只发了半个包时，另一线程 close() 应让接收循环干净退出。"""
    conn, remote = conn_pair
    entered_body = threading.Event()
    original_read_exact = conn.read_exact

    def read_exact(n):
        if n == 4:
            entered_body.set()
        return original_read_exact(n)

    conn.read_exact = read_exact
    session = ChatSession(conn, clock=fake_clock)
    # 0x03 消息包，uid 只到了 2 个字节
    remote.sendall(b"\x03\x01\x00")

    receiver = threading.Thread(target=session.receive_loop, args=(lambda m: None,))
    receiver.start()
    assert entered_body.wait(2.0)

    session.stop()
    session.close()
    receiver.join(3.0)

    assert not receiver.is_alive()
    assert session.status == SessionStatus.DISCONNECTED


class _RecordingSocket:
    """记录每次 recv 请求的大小，按请求返回填充字节。"""

    def __init__(self):
        self.requested: list[int] = []

    def recv(self, size):
        self.requested.append(size)
        return b"\x00" * size


def test_read_exact_caps_each_recv():
    conn = ChatConnection("127.0.0.1", 2001)
    conn.sock = _RecordingSocket()
    n = RECV_CHUNK_SIZE * 2 + 10

    assert len(conn.read_exact(n)) == n
    assert conn.sock.requested == [RECV_CHUNK_SIZE, RECV_CHUNK_SIZE, 10]


def test_connect_failure_is_network_error(monkeypatch):
    def refuse(address, timeout=None):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(socket, "create_connection", refuse)
    conn = ChatConnection("127.0.0.1", 2001)

    with pytest.raises(NetworkError) as exc:
        conn.connect()

    assert not isinstance(exc.value, TransportClosedError)
    assert conn.closed


# --- GameHttpClient ---


def _client(handler) -> GameHttpClient:
    return GameHttpClient(
        "127.0.0.1",
        1337,
        user_agent="BestHTTP/2 v2.5.2",
        os_header="2",
        transport=httpx.MockTransport(handler),
    )


def test_build_headers_order_and_case():
    client = _client(lambda r: httpx.Response(200))
    assert client.build_headers() == [
        ("User-Agent", "BestHTTP/2 v2.5.2"),
        ("x-OS", "2"),
    ]
    assert client.build_headers(dl=10)[-1] == ("x-DL", "10")


def test_post_returns_body():
    def handler(request):
        assert request.url == "http://127.0.0.1:1337/InfoService/GetServerTime"
        assert request.content == b"\x00"
        return httpx.Response(200, content=b"pong")

    with _client(handler) as client:
        assert client.post("/InfoService/GetServerTime", b"\x00") == b"pong"


def test_post_empty_body_raises():
    client = _client(lambda r: httpx.Response(200))
    with pytest.raises(EmptyResponseError, match="/x"):
        client.post("/x")


def test_post_transport_error_is_network_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(NetworkError):
        _client(handler).post("/x")
