from .request_id import RequestIDMiddleware
from .metrics import MetricsMiddleware

__all__ = ["RequestIDMiddleware", "MetricsMiddleware"]
