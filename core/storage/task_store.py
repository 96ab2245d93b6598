from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from core.storage.db_models import Task, TaskStatus
from core.tasks.clock import as_utc
from core.tasks.pagination import PageRequest

log = logging.getLogger("core.storage.tasks")

UNIQUE_VIOLATION_SQLSTATE = "23505"


class StoreError(Exception):
    """Échec de persistance non classé."""


class UniqueViolation(StoreError):
    """Violation de la contrainte d'unicité sur ``tasks.title``."""


class RecordNotFound(StoreError):
    """Aucune ligne ne correspond à la clé demandée."""


@dataclass(frozen=True)
class TaskFilter:
    status: Optional[TaskStatus] = None
    due_before: Optional[datetime] = None  # borne incluse
    search: Optional[str] = None


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION_SQLSTATE:
        return True
    msg = str(orig or exc)
    return "UNIQUE constraint failed" in msg or "duplicate key value" in msg


def _normalize(task: Task) -> Task:
    # SQLite rend des datetimes naïfs : on les repasse en UTC
    task.due_date = as_utc(task.due_date)
    task.created_at = as_utc(task.created_at)
    task.updated_at = as_utc(task.updated_at)
    return task


class TaskStore:
    """
    Accès à la table ``tasks`` (SQLModel / SQLAlchemy 2.0 async).
    Une session par opération, validée avant de rendre la main.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    # ---------- Infra utilitaires ----------

    async def create_all(self) -> None:
        async with self.session() as s:
            conn = await s.connection()
            await conn.run_sync(SQLModel.metadata.create_all)
            await s.commit()

    async def ping(self) -> bool:
        async with self.session() as s:
            await s.execute(text("SELECT 1"))
        return True

    @asynccontextmanager
    async def session(self):
        async with self._sessionmaker() as s:
            yield s

    # ---------- Écritures ----------

    async def insert(self, task: Task) -> Task:
        async with self.session() as s:
            try:
                s.add(task)
                await s.flush()
                await s.commit()
                await s.refresh(task)
            except IntegrityError as e:
                await s.rollback()
                if _is_unique_violation(e):
                    raise UniqueViolation(task.title) from e
                raise StoreError("insert failed") from e
            except (SQLAlchemyError, OSError, OverflowError, ValueError) as e:
                await s.rollback()
                raise StoreError("insert failed") from e
        log.debug("task inserted", extra={"task_title": task.title})
        return _normalize(task)

    async def update(self, task: Task) -> Task:
        if task.id is None:
            raise RecordNotFound("task has no id")
        values = {
            "title": task.title,
            "description": task.description,
            "status": task.status,
            "due_date": task.due_date,
            "updated_at": task.updated_at,
        }
        async with self.session() as s:
            try:
                res = await s.execute(update(Task).where(Task.id == task.id).values(**values))
                if res.rowcount == 0:
                    await s.rollback()
                    raise RecordNotFound(str(task.id))
                await s.commit()
            except IntegrityError as e:
                await s.rollback()
                if _is_unique_violation(e):
                    raise UniqueViolation(task.title) from e
                raise StoreError("update failed") from e
            except (SQLAlchemyError, OSError, OverflowError, ValueError) as e:
                await s.rollback()
                raise StoreError("update failed") from e
        return _normalize(task)

    async def delete_by_title(self, title: str) -> None:
        async with self.session() as s:
            try:
                res = await s.execute(delete(Task).where(Task.title == title))
                if res.rowcount == 0:
                    await s.rollback()
                    raise RecordNotFound(title)
                await s.commit()
            except (SQLAlchemyError, OSError, OverflowError, ValueError) as e:
                await s.rollback()
                raise StoreError("delete failed") from e

    # ---------- Lectures ----------

    async def find_by_title(self, title: str) -> Task:
        async with self.session() as s:
            try:
                res = await s.execute(select(Task).where(Task.title == title).limit(1))
                task = res.scalars().first()
            except (SQLAlchemyError, OSError, OverflowError, ValueError) as e:
                raise StoreError("lookup failed") from e
        if task is None:
            raise RecordNotFound(title)
        return _normalize(task)

    async def list_filtered(self, flt: TaskFilter, page: PageRequest) -> Tuple[List[Task], int]:
        where = []
        if flt.status is not None:
            where.append(Task.status == flt.status)
        if flt.due_before is not None:
            where.append(Task.due_date <= flt.due_before)
        if flt.search:
            where.append(Task.title.icontains(flt.search, autoescape=True))

        base = select(Task)
        total_q = select(func.count(Task.id))
        if where:
            base = base.where(and_(*where))
            total_q = total_q.where(and_(*where))

        stmt = base.order_by(Task.id.asc()).limit(page.limit).offset(page.offset)
        async with self.session() as s:
            try:
                total = (await s.execute(total_q)).scalar_one()
                rows = (await s.execute(stmt)).scalars().all()
            except (SQLAlchemyError, OSError, OverflowError, ValueError) as e:
                raise StoreError("list failed") from e
        return [_normalize(t) for t in rows], total
