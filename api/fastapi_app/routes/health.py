from fastapi import APIRouter, Depends, Request
import logging
import time

from core.storage.task_store import TaskStore
from ..deps import get_task_store

router = APIRouter(prefix="", tags=["health"])

log = logging.getLogger("api.health")


@router.get("/health")
async def healthcheck(request: Request, store: TaskStore = Depends(get_task_store)):
    started_mono = getattr(request.app.state, "started_monotonic", None)
    uptime_s = int(time.monotonic() - started_mono) if started_mono else None
    try:
        await store.ping()
    except Exception as e:
        log.warning("HEALTH degraded: %s", e)
        return {
            "status": "degraded",
            "service": "api",
            "version": getattr(request.app, "version", None),
            "db_ok": False,
            "error": str(e),
            "uptime_s": uptime_s,
        }
    return {
        "status": "ok",
        "service": "api",
        "version": getattr(request.app, "version", None),
        "db_ok": True,
        "uptime_s": uptime_s,
    }
