"""Entry point for FastAPI application.

This module exposes the FastAPI ``app`` instance so runners can import it
using ``from api.fastapi_app.main import app`` and starts uvicorn when run
directly (``python -m api.fastapi_app.main``).
"""
import os

from .app import app

__all__ = ["app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.fastapi_app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
