# tests_api/conftest.py
import os

os.environ.setdefault("CONFIG_SKIP_DOTENV", "1")

import pytest_asyncio  # noqa: E402
from asgi_lifespan import LifespanManager  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

# --- importe l'app et les deps ---
from api.fastapi_app.app import app  # noqa: E402
from api.fastapi_app import deps as api_deps  # noqa: E402


# ---------- Engine & Session de test (SQLite fichier) ----------
# NB: on évite sqlite in-memory (connexions multiples) ; un fichier par test
@pytest_asyncio.fixture
async def test_sessionmaker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test_api.db'}", future=True)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_sessionmaker) -> AsyncClient:
    """
    Client httpx avec:
      - base SQLite de test via override get_sessionmaker
      - schéma créé par le lifespan (AUTO_CREATE_SCHEMA)
      - gestion correcte du lifespan app (startup/shutdown)
    """
    api_deps.settings.auto_create_schema = True
    app.dependency_overrides[api_deps.get_sessionmaker] = lambda: test_sessionmaker

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(client: AsyncClient) -> AsyncClient:
    return client
