# tests/test_game_session.py
"""
测试游戏 API 会话:
1. 请求路径 (含服务器的 Challange 拼写) 与请求体。
2. 请求头名大小写在线上保持原样 (x-OS / x-DL)。
3. 状态流转与错误处理。
"""

import json
import struct

import httpx
import pytest

from helpers import game_string
from scheroes_core.exceptions import DataFormatError, EmptyResponseError, NetworkError
from scheroes_core.network import GameHttpClient
from scheroes_core.protocols.game import constants, packets
from scheroes_core.protocols.game.session import GameSession
from scheroes_core.state import SessionStatus


def _auth_response_body() -> bytes:
    out = bytearray(b"\x00" * 6 + b"\x01\x00")
    for name, kind in packets.AUTH_RESPONSE_LAYOUT:
        if isinstance(kind, int):
            out += b"\x00" * kind
        elif name == "json":
            out += game_string(json.dumps({"ok": True}), kind)
        else:
            out += game_string(f"{name}.example", kind)
    return bytes(out)


class Recorder:
    """记录全部请求，并按路径返回预置响应体。"""

    def __init__(self, responses: dict[str, bytes]):
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, content=self.responses.get(request.url.path, b""))


@pytest.fixture
def recorder():
    return Recorder(
        {
            constants.PATH_SERVER_TIME: b"\x00\x00\x00" + struct.pack("<I", 1700000000),
            constants.PATH_AUTH_REQUEST: _auth_response_body(),
            constants.PATH_AUTH_CHALLENGE_RESPONSE: b"\x01",
        }
    )


def _make_session(handler, uid=1, version="1.0") -> GameSession:
    client = GameHttpClient(
        "127.0.0.1",
        1337,
        user_agent=constants.USER_AGENT,
        os_header=constants.OS_HEADER_VALUE,
        transport=httpx.MockTransport(handler),
    )
    return GameSession(client, uid=uid, version=version)


def test_initial_status(recorder):
    assert _make_session(recorder).status == SessionStatus.CONNECTED


def test_server_time(recorder):
    session = _make_session(recorder)

    response = session.server_time()

    assert response.timestamp == 1700000000
    assert session.state.server_time == 1700000000
    (request,) = recorder.requests
    assert request.method == "POST"
    assert request.url.path == "/InfoService/GetServerTime"
    assert request.content == b"\x00\xff\xff\xff\xff\x031.0"
    # GetServerTime 不携带 x-DL
    names = [name for name, _ in request.headers.raw]
    assert b"x-DL" not in names
    assert (b"x-OS", b"2") in request.headers.raw


def test_auth_request_headers_keep_exact_case(recorder):
    session = _make_session(recorder, uid=1, version="1.0")

    session.auth_request()

    (request,) = recorder.requests
    assert request.url.path == "/AuthService/AuthRequest"
    raw = request.headers.raw
    assert (b"User-Agent", b"BestHTTP/2 v2.5.2") in raw
    assert (b"x-OS", b"2") in raw
    assert (b"x-DL", b"10") in raw
    assert session.state.last_dl == 10


def test_auth_request_parses_response_and_updates_status(recorder):
    session = _make_session(recorder)

    response = session.auth_request()

    assert response.game_server == "game_server.example"
    assert response.chat_server == "chat_server.example"
    assert response.json == {"ok": True}
    assert session.status == SessionStatus.AUTH_IN_PROGRESS


def test_auth_request_uid_override(recorder):
    session = _make_session(recorder, uid=1)
    session.auth_request(uid=0x01020304)
    body = recorder.requests[0].content
    assert body[7:11] == struct.pack("<I", 0x01020304)


def test_auth_challenge_response_path_keeps_server_spelling(recorder):
    session = _make_session(recorder)

    session.auth_request()
    response = session.auth_challenge_response()

    assert recorder.requests[1].url.path == "/AuthService/AuthChallangeResponse"
    assert (b"x-DL", b"6") in recorder.requests[1].headers.raw
    assert response.raw == b"\x01"
    assert session.status == SessionStatus.AUTHENTICATED
    assert session.state.is_authenticated


def test_empty_response_raises(recorder):
    recorder.responses[constants.PATH_SERVER_TIME] = b""
    session = _make_session(recorder)

    with pytest.raises(EmptyResponseError) as exc:
        session.server_time()

    assert exc.value.path == constants.PATH_SERVER_TIME
    assert session.state.last_error


def test_non_200_with_body_is_still_returned():
    def handler(request):
        return httpx.Response(500, content=b"\x00\x00\x00" + struct.pack("<I", 5))

    session = _make_session(handler)
    assert session.server_time().timestamp == 5


def test_malformed_response_moves_to_error(recorder):
    recorder.responses[constants.PATH_AUTH_REQUEST] = b"\x00" * 6 + b"\x00" + b"\x80\x02\x00"
    session = _make_session(recorder)

    with pytest.raises(DataFormatError):
        session.auth_request()

    assert session.status == SessionStatus.ERROR
    assert session.state.last_error


def test_transport_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    session = _make_session(handler)
    with pytest.raises(NetworkError):
        session.server_time()
    assert "refused" in session.state.last_error


def test_close(recorder):
    session = _make_session(recorder)
    session.close()
    assert session.status == SessionStatus.DISCONNECTED
