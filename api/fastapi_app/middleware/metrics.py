from __future__ import annotations

import time
from typing import Any

from core.telemetry.metrics import (
    metrics_enabled,
    get_http_requests_total,
    get_http_request_duration_seconds,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


def _route_template(request: Request) -> str:
    # /tasks/{title} plutôt que le titre réel : cardinalité bornée
    route = request.scope.get("route")
    if route is None:
        return "/unknown"
    return getattr(route, "path", None) or getattr(route, "path_format", "/unknown")


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Any):  # type: ignore[override]
        if not metrics_enabled() or request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        route_path = _route_template(request)
        get_http_requests_total().labels(route_path, request.method, str(response.status_code)).inc()
        get_http_request_duration_seconds().labels(route_path, request.method).observe(duration)
        return response
