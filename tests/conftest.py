import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.services.task_service import TaskService
from core.storage.task_store import TaskStore
from tests.fakes import FakeClock


@pytest_asyncio.fixture
async def sessionmaker(tmp_path):
    """SQLite fichier par test (pas d'in-memory : plusieurs connexions)."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}", future=True)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(sessionmaker) -> TaskStore:
    s = TaskStore(sessionmaker)
    await s.create_all()
    return s


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(store, clock) -> TaskService:
    return TaskService(store, clock=clock)
