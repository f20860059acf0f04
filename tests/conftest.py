# tests/conftest.py
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from helpers import FakeClock
from scheroes_core.config import ScHeroesConfig


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def valid_config():
    """[Fixture] 返回一个完整的 ScHeroesConfig 对象。"""
    return ScHeroesConfig(
        uid=42,
        language="en",
        clan_id=9,
        chat_host="127.0.0.1",
        chat_port=2001,
        chat_version=1,
        api_host="127.0.0.1",
        api_port=1337,
        api_version="1.7.82.30601",
        user_agent="BestHTTP/2 v2.5.2",
        os_header="2",
        poll_interval=0.01,
        keep_alive_interval=60.0,
        http_timeout=None,
    )
