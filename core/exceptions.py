from __future__ import annotations

from typing import Any, Optional, Dict, Sequence


class AppError(Exception):
    """Base pour les erreurs métier applicatives.

    Porte un code stable, un status HTTP suggéré et un hint optionnel.
    """

    code: str = "app_error"
    http_status: int = 500

    def __init__(self, message: str, *, hint: Optional[str] = None, details: Any | None = None):
        super().__init__(message)
        self.hint = hint
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": str(self),
            "code": self.code,
            "hint": self.hint,
        }


class BadRequestError(AppError):
    code = "bad_request"
    http_status = 400


class TaskValidationError(BadRequestError):
    """Une ou plusieurs règles de champ violées (cf. ``core.tasks.validation``)."""

    code = "validation_error"

    def __init__(self, violations: Sequence[Any], *, hint: Optional[str] = None):
        message = "; ".join(v.message for v in violations) or "invalid task"
        super().__init__(message, hint=hint, details=list(violations))

    @property
    def violations(self) -> list:
        return list(self.details or [])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = [v.as_dict() for v in self.violations]
        return body


class ResourceConflict(AppError):
    code = "conflict"
    http_status = 409


class NotFoundError(AppError):
    code = "not_found"
    http_status = 404


class PersistenceError(AppError):
    code = "persistence_error"
    http_status = 500
