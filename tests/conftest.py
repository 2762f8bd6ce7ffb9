"""Pytest configuration and shared fixtures."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from nexusbot.config import NexusSettings
from nexusbot.responder import TextReply
from nexusbot.state import RuntimeState
from nexusbot.whatsapp.auth import MultiFileAuthState
from nexusbot.whatsapp.socket import WASocket


class FakeSocket(WASocket):
    """In-memory WASocket: records sends, lets tests push event batches."""

    def __init__(self, auth=None, version=None):
        self.auth = auth
        self.version = version
        self.handler = None
        self.sent: list[tuple[str, dict]] = []
        self.media: bytes | Exception = b"\xff\xd8fake-jpeg"
        self.send_error: Exception | None = None
        self.start_error: Exception | None = None
        self.logged_out = False
        self.close_count = 0

    async def start(self, handler):
        if self.start_error:
            raise self.start_error
        self.handler = handler

    async def emit(self, batch: dict):
        await self.handler(batch)

    async def send_message(self, jid, content):
        if self.send_error:
            raise self.send_error
        self.sent.append((jid, content))

    async def download_media(self, message):
        if isinstance(self.media, Exception):
            raise self.media
        return self.media

    async def logout(self):
        self.logged_out = True

    async def close(self):
        self.close_count += 1


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment, with instant reconnects."""
    return NexusSettings(
        _env_file=None,
        auth_dir=str(tmp_path / "auth"),
        fireworks_api_key="test-key",
        reconnect_base_delay=0,
        reconnect_max_delay=0,
        reconnect_max_attempts=3,
        ai_active=True,
        system_prompt="You are helpful.",
    )


@pytest.fixture
def state(settings):
    return RuntimeState.from_settings(settings)


@pytest.fixture
def auth_state(settings):
    return MultiFileAuthState(settings.auth_dir)


@pytest.fixture
def responder():
    """ChatResponder stand-in that always answers with text."""
    mock = MagicMock()
    mock.generate = AsyncMock(return_value=TextReply(content="Olá!"))
    return mock


@pytest.fixture
def sockets():
    """Every FakeSocket the session factory has built, in order."""
    return []


@pytest.fixture
def socket_factory(sockets):
    def factory(auth, version):
        sock = FakeSocket(auth, version)
        sockets.append(sock)
        return sock
    return factory


@pytest.fixture
def version_fetcher():
    return AsyncMock(return_value=((2, 3000, 1), True))
