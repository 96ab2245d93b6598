# api/fastapi_app/routes/tasks.py
from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request, Response, status

from core.services.task_service import TaskService
from core.tasks.schemas import CreateTaskRequest, TaskOut, TasksResponse, UpdateTaskRequest

from ..deps import get_task_service
from ..pagination import set_pagination_headers

router = APIRouter(prefix="/tasks", tags=["tasks"])

log = logging.getLogger("api.tasks")


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: CreateTaskRequest,
    response: Response,
    service: TaskService = Depends(get_task_service),
):
    """Crée une tâche.

    Exemple cURL::

        curl -X POST http://localhost:8000/tasks \
             -H 'Content-Type: application/json' \
             -d '{"title": "t1", "due_date": "2030-01-01T09:00:00Z"}'
    """
    task = await service.create_task(payload)
    response.headers["Location"] = f"/tasks/{quote(task.title, safe='')}"
    return TaskOut.model_validate(task)


@router.get("", response_model=TasksResponse)
async def list_tasks(
    request: Request,
    response: Response,
    service: TaskService = Depends(get_task_service),
    status: Optional[str] = Query(None, description="Filtre exact sur le statut"),
    due_date: Optional[str] = Query(None, description="Échéance au plus tard ce jour (YYYY-MM-DD)"),
    page: Optional[str] = Query(None, description="Page (défaut 1)"),
    size: Optional[str] = Query(None, description="Taille de page (défaut 10)"),
    search: Optional[str] = Query(None, description="Sous-chaîne du titre, insensible à la casse"),
):
    # page/size restent des chaînes : une valeur invalide retombe sur le défaut
    result = await service.get_all_tasks(
        status=status, due_date=due_date, page=page, size=size, search=search
    )
    set_pagination_headers(response, request, total=result.total, page=result.page, size=result.size)
    return result


@router.get("/{title:path}", response_model=TaskOut)
async def get_task(title: str, service: TaskService = Depends(get_task_service)):
    task = await service.get_task(title)
    return TaskOut.model_validate(task)


@router.put("/{title:path}", response_model=TaskOut)
async def update_task(
    title: str,
    payload: UpdateTaskRequest,
    service: TaskService = Depends(get_task_service),
):
    task = await service.update_task(title, payload)
    return TaskOut.model_validate(task)


@router.delete("/{title:path}")
async def delete_task(title: str, service: TaskService = Depends(get_task_service)) -> Dict[str, str]:
    await service.delete_task(title)
    log.debug("delete acknowledged", extra={"task_title": title})
    return {"message": "Task deleted successfully"}
