import os
import tempfile
from typing import AsyncIterator, Dict

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_AUTO_CREATE", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="labeldesk-uploads-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from labeldesk.core.config import app_settings
from labeldesk.core.db import build_engine, build_session_factory, get_db
from labeldesk.core.storage import LocalStorage, get_storage
from labeldesk.main import app
from labeldesk.models import Base


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = build_engine(app_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "uploads"), "/uploads")


@pytest.fixture
async def client(session_factory: async_sessionmaker, storage: LocalStorage) -> AsyncIterator[AsyncClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, username: str, role: str = "artist", password: str = "secret123") -> Dict:
    """Register an account and return the response body (user and token)."""
    response = await client.post(
        "/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def admin(client: AsyncClient) -> Dict:
    return await register(client, "admin", role="admin")


@pytest.fixture
async def manager(client: AsyncClient) -> Dict:
    return await register(client, "manager", role="manager")


@pytest.fixture
async def artist_user(client: AsyncClient) -> Dict:
    return await register(client, "artist", role="artist")


@pytest.fixture
def admin_headers(admin: Dict) -> Dict[str, str]:
    return auth(admin["token"])


@pytest.fixture
def manager_headers(manager: Dict) -> Dict[str, str]:
    return auth(manager["token"])


@pytest.fixture
def artist_headers(artist_user: Dict) -> Dict[str, str]:
    return auth(artist_user["token"])


async def create_artist(client: AsyncClient, headers: Dict[str, str], name: str = "The Testers") -> Dict:
    response = await client.post("/artist", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["artist"]


async def create_label(client: AsyncClient, headers: Dict[str, str], name: str = "Test Records") -> Dict:
    response = await client.post("/label", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["label"]


async def create_release(
    client: AsyncClient,
    headers: Dict[str, str],
    artist_id: str,
    upc: str = "012345678905",
    **fields,
) -> Dict:
    data = {"title": "First Light", "artist_id": artist_id, "genre": "Pop", "upc": upc}
    data.update(fields)
    response = await client.post("/releases", data=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["release"]
