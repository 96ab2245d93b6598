from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.storage.db_models import TaskStatus


class CreateTaskRequest(BaseModel):
    """Corps de ``POST /tasks``.

    Seul le typage est contrôlé ici ; les règles métier (titre, échéance,
    statut) sont évaluées par ``core.tasks.validation.validate_create``.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None


class UpdateTaskRequest(BaseModel):
    """Corps de ``PUT /tasks/{title}`` : mise à jour partielle.

    Un champ absent du JSON (ou envoyé à ``null``) ne modifie pas la tâche ;
    un champ vide (``"description": ""``) est appliqué tel quel.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None

    def provided(self) -> Dict[str, Any]:
        """Champs effectivement fournis par le client, avec leur valeur."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }

    def has(self, name: str) -> bool:
        return name in self.model_fields_set and getattr(self, name) is not None


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    status: TaskStatus
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TasksResponse(BaseModel):
    tasks: List[TaskOut] = Field(default_factory=list)
    total: int
    page: int
    size: int
    model_config = ConfigDict(json_schema_extra={"examples": [{"tasks": [], "total": 0, "page": 1, "size": 10}]})
