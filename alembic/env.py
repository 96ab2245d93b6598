# alembic/env.py
from __future__ import annotations
import os

from alembic import context
from sqlalchemy import create_engine, pool
from sqlmodel import SQLModel

# --- Importe les modèles pour que SQLModel.metadata soit peuplé ---
from core.storage.db_models import Task  # noqa: F401

# Alembic Config object
config = context.config

# Cible des migrations
target_metadata = SQLModel.metadata

_ASYNC_TO_SYNC = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}


def _to_sync(url: str) -> str:
    for async_prefix, sync_prefix in _ASYNC_TO_SYNC.items():
        if url.startswith(async_prefix):
            return url.replace(async_prefix, sync_prefix, 1)
    return url


def _sync_url() -> str:
    """
    Récupère l'URL de BDD pour Alembic (driver *synchrone*).
    Priorité :
      1) DATABASE_URL_SYNC (si défini)
      2) URL de l'application (DATABASE_URL ou DB_*) convertie en driver synchrone
      3) valeur dans alembic.ini (sqlalchemy.url), si présente
    """
    env_sync = os.getenv("DATABASE_URL_SYNC")
    if env_sync:
        return env_sync

    if os.getenv("DATABASE_URL") or os.getenv("DB_USER"):
        from api.fastapi_app.deps import Settings

        return _to_sync(Settings().database_url)

    ini_url = config.get_main_option("sqlalchemy.url")
    if ini_url:
        return _to_sync(ini_url)

    raise RuntimeError(
        "Aucune URL de BDD trouvée. Définis DATABASE_URL, DB_USER/DB_PASSWORD "
        "ou DATABASE_URL_SYNC, ou mets sqlalchemy.url dans alembic.ini."
    )


def run_migrations_offline() -> None:
    url = _sync_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = _sync_url()
    connectable = create_engine(url, poolclass=pool.NullPool, future=True)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
