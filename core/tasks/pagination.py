from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from core.tasks.schemas import TaskOut, TasksResponse

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# OFFSET est un entier signé 64 bits côté SQLite comme PostgreSQL
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size


def _positive_int(raw: Optional[str | int], default: int) -> int:
    """Entier strictement positif, sinon ``default`` (pas d'erreur)."""
    if raw is None:
        return default
    text = str(raw).strip()
    # chiffres ASCII uniquement : "+5", "5_000" ou "-1" retombent sur le défaut
    if not (text.isascii() and text.isdigit()):
        return default
    value = int(text)
    return value if value > 0 else default


def resolve_page(
    page: Optional[str | int],
    size: Optional[str | int],
    *,
    default_size: int = DEFAULT_PAGE_SIZE,
    max_size: int = MAX_PAGE_SIZE,
) -> PageRequest:
    """Calcule la page effective à partir des paramètres bruts de la requête."""
    size = min(_positive_int(size, default_size), max_size)
    # au-delà, l'offset ne tient plus dans la base : on borne à la dernière page adressable
    page = min(_positive_int(page, DEFAULT_PAGE), MAX_OFFSET // size + 1)
    return PageRequest(page=page, size=size)


def build_tasks_response(tasks: Iterable[object], total: int, page: PageRequest) -> TasksResponse:
    return TasksResponse(
        tasks=[TaskOut.model_validate(t) for t in tasks],
        total=total,
        page=page.page,
        size=page.size,
    )
