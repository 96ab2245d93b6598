"""Initialisation et middleware Sentry."""
from __future__ import annotations

import os

import sentry_sdk
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


def init_sentry() -> bool:
    """Initialise Sentry si ``SENTRY_DSN`` est défini ; renvoie l'état d'activation."""
    dsn = os.getenv("SENTRY_DSN", "")
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("SENTRY_ENV", "dev"),
        release=os.getenv("RELEASE", "task_api@dev"),
        send_default_pii=False,
    )
    return True


class SentryContextMiddleware(BaseHTTPMiddleware):
    """Annote les événements Sentry avec request_id, route et statut."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        try:
            response = await call_next(request)
        except Exception:
            self._annotate(request, 500)
            raise
        self._annotate(request, response.status_code)
        return response

    @staticmethod
    def _annotate(request: Request, status: int) -> None:
        # request_id est posé par RequestIDMiddleware, plus interne dans la pile
        rid = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
        if rid:
            sentry_sdk.set_tag("request_id", rid)
        route = request.scope.get("route")
        sentry_sdk.set_tag("route", getattr(route, "path", request.url.path))
        sentry_sdk.set_tag("status", status)
