from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from core.storage.db_models import Task
from core.storage.task_store import RecordNotFound, StoreError, TaskFilter
from core.tasks.pagination import PageRequest

EPOCH = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Horloge déterministe : avance d'une seconde à chaque lecture."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value

    def peek(self) -> datetime:
        return self.current


class BrokenStore:
    """Store dont chaque opération échoue comme une base indisponible."""

    def __init__(self, existing: Task | None = None):
        self.existing = existing

    async def insert(self, task: Task) -> Task:
        raise StoreError("connection refused")

    async def find_by_title(self, title: str) -> Task:
        if self.existing is not None and self.existing.title == title:
            return self.existing
        raise StoreError("connection refused")

    async def list_filtered(self, flt: TaskFilter, page: PageRequest) -> Tuple[List[Task], int]:
        raise StoreError("connection refused")

    async def update(self, task: Task) -> Task:
        raise StoreError("connection refused")

    async def delete_by_title(self, title: str) -> None:
        raise StoreError("connection refused")


class VanishingStore(BrokenStore):
    """La ligne existe à la lecture mais disparaît avant l'écriture (suppression concurrente)."""

    async def update(self, task: Task) -> Task:
        raise RecordNotFound(task.title)

    async def delete_by_title(self, title: str) -> None:
        raise RecordNotFound(title)
