# api/fastapi_app/app.py
from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

# Charger .env le plus tôt possible (sauf si CONFIG_SKIP_DOTENV=1)
from dotenv import load_dotenv
if os.getenv("CONFIG_SKIP_DOTENV", "").strip().lower() not in {"1", "true", "yes", "on"}:
    load_dotenv()

import core.log  # noqa: F401,E402  configure root logger

from core.storage.task_store import TaskStore  # noqa: E402
from .deps import settings, get_sessionmaker  # noqa: E402
from .routes import health, tasks  # noqa: E402
from .middleware import RequestIDMiddleware, MetricsMiddleware  # noqa: E402
from .observability import (  # noqa: E402
    metrics_enabled,
    generate_latest,
    init_sentry,
    SentryContextMiddleware,
)
from .utils.error_handlers import setup_error_handlers  # noqa: E402

log = logging.getLogger("api")

TAGS_METADATA = [
    {"name": "health", "description": "Healthcheck et disponibilité DB."},
    {
        "name": "tasks",
        "description": "CRUD des tâches : filtres, recherche et pagination.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_monotonic = time.monotonic()
    if settings.auto_create_schema:
        # Respecte l'override FastAPI de get_sessionmaker() si défini (tests)
        override = app.dependency_overrides.get(get_sessionmaker)
        sessionmaker = override() if callable(override) else get_sessionmaker()
        await TaskStore(sessionmaker).create_all()
        log.info("schema ready")
    yield


app = FastAPI(
    title="Task API",
    version="0.1.0",
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
)

# -------- Middlewares --------
app.add_middleware(RequestIDMiddleware)                # X-Request-ID propagation + access log
if init_sentry():
    app.add_middleware(SentryContextMiddleware)        # Sentry annotations
app.add_middleware(MetricsMiddleware)                  # Prometheus metrics
app.add_middleware(GZipMiddleware, minimum_size=1024)  # gzip

if metrics_enabled():
    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        payload = generate_latest()
        return Response(
            content=payload,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

# CORS
# Origines autorisées via variable d'env ALLOWED_ORIGINS (CSV)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization", "X-Request-ID"],
    expose_headers=["Link", "X-Total-Count", "X-Request-ID", "Location"],
)

setup_error_handlers(app)

# -------- Routes --------
app.include_router(health.router)
app.include_router(tasks.router)


# Redirection vers Swagger
@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")
