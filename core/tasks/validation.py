"""Règles de champ pour les requêtes de création et de mise à jour de tâche.

Chaque fonction renvoie la liste des violations ; une liste vide signifie
que la requête est valide. Aucune fonction ne modifie la requête.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, List, Optional

from core.storage.db_models import TaskStatus, TITLE_MAX_LENGTH
from core.tasks.clock import as_utc
from core.tasks.schemas import CreateTaskRequest, UpdateTaskRequest

STATUS_VALUES = tuple(s.value for s in TaskStatus)


@dataclass(frozen=True)
class Violation:
    field: str
    rule: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def _check_title(title: str, *, required: bool) -> List[Violation]:
    if not title:
        if required:
            return [Violation("title", "required", "title is required")]
        return [Violation("title", "min", "title must be at least 1 character")]
    out: List[Violation] = []
    if len(title) > TITLE_MAX_LENGTH:
        out.append(
            Violation("title", "max", f"title must be at most {TITLE_MAX_LENGTH} characters")
        )
    if any(ch.isspace() for ch in title):
        out.append(Violation("title", "nospaces", "title must not contain whitespace"))
    return out


def _check_due_date(due_date: Optional[datetime], now: datetime, *, required: bool) -> List[Violation]:
    if due_date is None:
        if required:
            return [Violation("due_date", "required", "due_date is required")]
        return []
    if as_utc(due_date) <= as_utc(now):
        return [Violation("due_date", "future", "due_date must be in the future")]
    return []


def _check_status(status: Optional[str], *, allow_empty: bool) -> List[Violation]:
    if not status and allow_empty:
        return []
    if status not in STATUS_VALUES:
        return [
            Violation("status", "oneof", f"status must be one of: {', '.join(STATUS_VALUES)}")
        ]
    return []


def validate_create(req: CreateTaskRequest, now: datetime) -> List[Violation]:
    violations = _check_title(req.title, required=True)
    violations += _check_status(req.status, allow_empty=True)
    violations += _check_due_date(req.due_date, now, required=True)
    return violations


def validate_update(req: UpdateTaskRequest, now: datetime) -> List[Violation]:
    # seuls les champs présents sont contrôlés
    violations: List[Violation] = []
    if req.has("title"):
        violations += _check_title(req.title, required=False)
    if req.has("status"):
        violations += _check_status(req.status, allow_empty=False)
    if req.has("due_date"):
        violations += _check_due_date(req.due_date, now, required=False)
    return violations
