from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import AppError


def _http_code_to_app_code(status_code: int) -> str:
    mapping = {
        400: "bad_request",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        503: "unavailable",
    }
    return mapping.get(int(status_code), "error")


def _make_body(detail: Any, code: str, hint: str | None = None) -> Dict[str, Any]:
    return {"detail": detail, "code": code, "hint": hint}


def setup_error_handlers(app: FastAPI) -> None:
    log = logging.getLogger("api.error")

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):  # type: ignore[override]
        rid = getattr(request.state, "request_id", None)
        if exc.http_status >= 500:
            # stacktrace complète (cause chaînée incluse) pour les erreurs serveur
            log.error("app_error: %s", exc, exc_info=exc, extra={"request_id": rid})
        else:
            log.info("app_error %s: %s", exc.code, exc, extra={"request_id": rid})
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        rid = getattr(request.state, "request_id", None)
        if exc.status_code >= 500:
            log.error("http_exception %s", exc.detail, extra={"request_id": rid})
        code = _http_code_to_app_code(exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=_make_body(exc.detail, code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):  # type: ignore[override]
        # JSON illisible ou types incorrects : 400 (les règles métier passent par AppError)
        rid = getattr(request.state, "request_id", None)
        log.info("request_validation_error", extra={"request_id": rid})
        body = _make_body("Invalid body", "bad_request")
        body["errors"] = jsonable_encoder(
            [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        )
        return JSONResponse(status_code=400, content=body)
