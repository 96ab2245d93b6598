from __future__ import annotations

import os
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.exposition import generate_latest as _generate_latest

# Registry globale pour toutes les métriques
registry = CollectorRegistry()

# Stockage lazy des métriques
_http_requests_total: Optional[Counter] = None
_http_request_duration_seconds: Optional[Histogram] = None
_task_operations_total: Optional[Counter] = None


def metrics_enabled() -> bool:
    """Indique si l'exposition des métriques est activée."""
    return (os.getenv("METRICS_ENABLED", "0") or "0").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }


def get_http_requests_total() -> Counter:
    global _http_requests_total
    if _http_requests_total is None:
        _http_requests_total = Counter(
            "http_requests_total",
            "Total des requêtes HTTP",
            ["route", "method", "status"],
            registry=registry,
        )
    return _http_requests_total


def get_http_request_duration_seconds() -> Histogram:
    global _http_request_duration_seconds
    if _http_request_duration_seconds is None:
        _http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "Durée des requêtes HTTP",
            ["route", "method"],
            registry=registry,
        )
    return _http_request_duration_seconds


def get_task_operations_total() -> Counter:
    global _task_operations_total
    if _task_operations_total is None:
        _task_operations_total = Counter(
            "task_operations_total",
            "Opérations sur les tâches par issue",
            ["operation", "outcome"],
            registry=registry,
        )
    return _task_operations_total


def record_task_operation(operation: str, outcome: str) -> None:
    """Incrémente ``task_operations_total`` si les métriques sont actives."""
    if metrics_enabled():
        get_task_operations_total().labels(operation, outcome).inc()


def generate_latest() -> bytes:
    """Génère le payload texte des métriques."""
    return _generate_latest(registry)
