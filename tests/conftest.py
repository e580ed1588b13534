"""Shared test fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lofersil.config import LofersilConfig
from lofersil.csrf import CSRFOptions, CSRFTokenService
from lofersil.main import create_app


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def csrf_service(clock):
    """Service with a fixed signing key and a fake clock."""
    service = CSRFTokenService(
        CSRFOptions(signing_key="unit-test-signing-key", token_expiration_ms=1000),
        clock=clock,
    )
    yield service
    service.destroy()


def _make_config(tmp_path, **overrides) -> LofersilConfig:
    values = {
        "environment": "test",
        "debug": True,
        "log_dir": str(tmp_path / "logs"),
        "csrf_secret": "test-csrf-secret",
    }
    values.update(overrides)
    return LofersilConfig(_env_file=None, **values)


@pytest.fixture
def config_factory(tmp_path):
    """Build isolated configs: no .env, logs under tmp_path."""

    def _factory(**overrides) -> LofersilConfig:
        return _make_config(tmp_path, **overrides)

    return _factory


@pytest.fixture
def app_config(config_factory):
    return config_factory()


@pytest.fixture
def app(app_config):
    return create_app(app_config)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client bound to an in-process app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def issued(client):
    """Fetch a CSRF token; the client's cookie jar now holds the token id."""
    resp = await client.get("/api/csrf-token")
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]
