"""
Shared fixtures for the Gym Log API tests.
Every test gets its own SQLite file (aiosqlite) and a freshly built app.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gymlog.app import create_app
from gymlog.config import Settings

PASSWORD = "secret123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'gym_test.db'}",
        session_secret="test-secret",
        bcrypt_rounds=4,  # bcrypt minimum, keeps the suite fast
        rate_limit_requests=0,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    # ASGITransport does not run lifespan, so init/dispose by hand
    app = create_app(settings)
    await app.state.db.init()
    yield app
    await app.state.db.dispose()


def make_client(app, **transport_kwargs) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app, **transport_kwargs), base_url="http://test"
    )


async def login_as(ac: AsyncClient, username: str) -> dict:
    r = await ac.post("/auth/register", json={"username": username, "password": PASSWORD})
    assert r.status_code == 201, r.text
    return r.json()


@pytest_asyncio.fixture
async def anon(app):
    async with make_client(app) as ac:
        yield ac


@pytest_asyncio.fixture
async def client(app):
    """Logged in as alice."""
    async with make_client(app) as ac:
        await login_as(ac, "alice")
        yield ac


@pytest_asyncio.fixture
async def other_client(app):
    """Logged in as bob, a second user sharing the same database."""
    async with make_client(app) as ac:
        await login_as(ac, "bob")
        yield ac
