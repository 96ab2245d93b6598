from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Sequence

from fastapi import Depends
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.services.task_service import TaskService
from core.storage.task_store import TaskStore

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # DATABASE_URL prime ; à défaut, URL PostgreSQL composée depuis DB_*
    # si DB_USER est fourni, sinon SQLite local.
    database_url_raw: Optional[str] = Field(default=None, alias="DATABASE_URL")
    db_host: str = Field(default="localhost", alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT")
    db_user: Optional[str] = Field(default=None, alias="DB_USER")
    db_password: Optional[str] = Field(default=None, alias="DB_PASSWORD")
    db_name: str = Field(default="task_manager", alias="DB_NAME")

    allowed_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS",
    )
    auto_create_schema: bool = Field(default=True, alias="AUTO_CREATE_SCHEMA")
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")

    @property
    def database_url(self) -> str:
        if self.database_url_raw:
            return self.database_url_raw
        if self.db_user:
            return URL.create(
                "postgresql+asyncpg",
                username=self.db_user,
                password=self.db_password,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
            ).render_as_string(hide_password=False)
        return "sqlite+aiosqlite:///./tasks.db"

    @property
    def allowed_origins(self) -> Sequence[str]:
        raw = self.allowed_origins_raw or ""
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# SQLAlchemy async engine/session
engine: AsyncEngine = create_async_engine(settings.database_url, pool_pre_ping=True)

SessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine, expire_on_commit=False, class_=AsyncSession
)


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return SessionLocal


def get_task_store(
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> TaskStore:
    return TaskStore(sessionmaker)


def get_task_service(store: TaskStore = Depends(get_task_store)) -> TaskService:
    return TaskService(
        store,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
