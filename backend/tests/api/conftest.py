"""API test fixtures — fully wired App + httpx client over ASGI.

Invariants:
    - Every test gets a fresh App from build_app() with its own MemoryStorage
    - App.initialize() runs for real; only the listener and signal registration are faked
    - Requests go through the complete middleware chain via ASGITransport

Design Decisions:
    - No sockets: FakeHttpServer records the port, httpx talks to app.server directly
"""

import pytest
from httpx import ASGITransport, AsyncClient

from userhub.config import ServerSettings, Settings
from userhub.main import build_app

from tests.fakes import TEST_MAX_BODY_BYTES, FakeHttpServer, FakeSignals


@pytest.fixture
async def userhub_app():
    app = build_app(
        Settings(server=ServerSettings(port=4000, max_body_bytes=TEST_MAX_BODY_BYTES)),
        http_server_factory=FakeHttpServer([]).factory,
        signal_installer=FakeSignals().install,
    )
    await app.initialize()
    yield app
    await app.storage.disconnect()


@pytest.fixture
async def client(userhub_app):
    async with AsyncClient(
        transport=ASGITransport(app=userhub_app.server), base_url="http://test",
    ) as c:
        yield c
