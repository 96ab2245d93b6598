from __future__ import annotations

import logging
from datetime import datetime, time, timezone
from typing import Optional

from core.exceptions import (
    BadRequestError,
    NotFoundError,
    PersistenceError,
    ResourceConflict,
    TaskValidationError,
)
from core.storage.db_models import Task, TaskStatus
from core.storage.task_store import RecordNotFound, StoreError, TaskFilter, TaskStore, UniqueViolation
from core.tasks.clock import Clock, as_utc, utcnow
from core.tasks.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, build_tasks_response, resolve_page
from core.tasks.schemas import CreateTaskRequest, TasksResponse, UpdateTaskRequest
from core.tasks.validation import validate_create, validate_update
from core.telemetry.metrics import record_task_operation

log = logging.getLogger("core.tasks.service")

DUE_DATE_FORMAT = "%Y-%m-%d"


def _require_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise BadRequestError("Task title cannot be empty")
    return title


def _parse_due_threshold(raw: str) -> datetime:
    """``YYYY-MM-DD`` -> dernière microseconde de ce jour (UTC)."""
    try:
        day = datetime.strptime(raw.strip(), DUE_DATE_FORMAT).date()
    except ValueError as e:
        raise BadRequestError(
            "Invalid due_date format", hint="expected YYYY-MM-DD"
        ) from e
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def _parse_status_filter(raw: str) -> TaskStatus:
    try:
        return TaskStatus(raw.strip())
    except ValueError as e:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise BadRequestError("Invalid status filter", hint=f"expected one of: {allowed}") from e


class TaskService:
    """Règles métier des tâches au-dessus d'un ``TaskStore``.

    Sans état : le store est injecté à la construction, l'horloge aussi
    (utile en tests). Toutes les erreurs sortent sous forme d'``AppError``.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        clock: Clock = utcnow,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.store = store
        self._clock = clock
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _now(self) -> datetime:
        return as_utc(self._clock())

    async def _fetch(self, title: str) -> Task:
        try:
            return await self.store.find_by_title(title)
        except RecordNotFound as e:
            raise NotFoundError("Task not found") from e
        except StoreError as e:
            log.error("task lookup failed", exc_info=True, extra={"task_title": title})
            raise PersistenceError("Could not retrieve task") from e

    # ---------- Création ----------

    async def create_task(self, req: CreateTaskRequest) -> Task:
        now = self._now()
        violations = validate_create(req, now)
        if violations:
            record_task_operation("create", "invalid")
            raise TaskValidationError(violations)

        task = Task(
            title=req.title,
            description=req.description or "",
            status=TaskStatus(req.status) if req.status else TaskStatus.pending,
            due_date=as_utc(req.due_date),
            created_at=now,
            updated_at=now,
        )
        try:
            task = await self.store.insert(task)
        except UniqueViolation as e:
            record_task_operation("create", "conflict")
            raise ResourceConflict("Task with this title already exists") from e
        except StoreError as e:
            record_task_operation("create", "error")
            log.error("task insert failed", exc_info=True, extra={"task_title": req.title})
            raise PersistenceError("Could not create task") from e

        record_task_operation("create", "ok")
        log.info("task created", extra={"task_title": task.title})
        return task

    # ---------- Lecture ----------

    async def get_task(self, title: str) -> Task:
        return await self._fetch(_require_title(title))

    async def get_all_tasks(
        self,
        *,
        status: Optional[str] = None,
        due_date: Optional[str] = None,
        page: Optional[str | int] = None,
        size: Optional[str | int] = None,
        search: Optional[str] = None,
    ) -> TasksResponse:
        flt = TaskFilter(
            status=_parse_status_filter(status) if status and status.strip() else None,
            due_before=_parse_due_threshold(due_date) if due_date and due_date.strip() else None,
            search=search.strip() if search and search.strip() else None,
        )
        page_req = resolve_page(
            page, size, default_size=self.default_page_size, max_size=self.max_page_size
        )
        try:
            tasks, total = await self.store.list_filtered(flt, page_req)
        except StoreError as e:
            log.error("task listing failed", exc_info=True)
            raise PersistenceError("Could not retrieve tasks") from e
        return build_tasks_response(tasks, total, page_req)

    # ---------- Mise à jour ----------

    async def update_task(self, title: str, req: UpdateTaskRequest) -> Task:
        task = await self._fetch(_require_title(title))

        now = self._now()
        violations = validate_update(req, now)
        if violations:
            record_task_operation("update", "invalid")
            raise TaskValidationError(violations)

        changes = req.provided()
        new_title = changes.get("title")
        if new_title is not None and new_title != task.title:
            # pré-contrôle indicatif : la contrainte d'unicité reste l'arbitre
            try:
                await self.store.find_by_title(new_title)
            except RecordNotFound:
                pass
            except StoreError as e:
                raise PersistenceError("Could not update task") from e
            else:
                record_task_operation("update", "conflict")
                raise ResourceConflict("new title already exists")

        if "title" in changes:
            task.title = changes["title"]
        if "description" in changes:
            task.description = changes["description"]
        if "status" in changes:
            task.status = TaskStatus(changes["status"])
        if "due_date" in changes:
            task.due_date = as_utc(changes["due_date"])
        task.updated_at = now

        try:
            task = await self.store.update(task)
        except UniqueViolation as e:
            record_task_operation("update", "conflict")
            raise ResourceConflict("new title already exists") from e
        except RecordNotFound as e:
            raise NotFoundError("Task not found") from e
        except StoreError as e:
            record_task_operation("update", "error")
            log.error("task update failed", exc_info=True, extra={"task_title": title})
            raise PersistenceError("Could not update task") from e

        record_task_operation("update", "ok")
        log.info("task updated", extra={"task_title": task.title})
        return task

    # ---------- Suppression ----------

    async def delete_task(self, title: str) -> None:
        title = _require_title(title)
        await self._fetch(title)
        try:
            await self.store.delete_by_title(title)
        except RecordNotFound as e:
            raise NotFoundError("Task not found") from e
        except StoreError as e:
            record_task_operation("delete", "error")
            log.error("task delete failed", exc_info=True, extra={"task_title": title})
            raise PersistenceError("Could not delete task") from e
        record_task_operation("delete", "ok")
        log.info("task deleted", extra={"task_title": title})
