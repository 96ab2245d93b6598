from core.telemetry.metrics import metrics_enabled, generate_latest
from .sentry import init_sentry, SentryContextMiddleware

__all__ = [
    "metrics_enabled",
    "generate_latest",
    "init_sentry",
    "SentryContextMiddleware",
]
