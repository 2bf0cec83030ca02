"""Prometheus metrics middleware: instruments every HTTP request.

Gauge up on entry, down on exit; on completion one REQUEST_COUNT
increment (method/endpoint/status) and one REQUEST_DURATION observation.

Only known routes get their own endpoint label.  /claim-badge is hit by
browsers but also by scanners, and labelling every random path would
grow the series count without bound.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

_KNOWN_PATHS = frozenset({"/claim-badge", "/health", "/ready"})


def _endpoint_label(path: str) -> str:
    return path if path in _KNOWN_PATHS else "other"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Prometheus scrapes would otherwise dominate the request count
        if request.url.path == "/metrics":
            return await call_next(request)

        endpoint = _endpoint_label(request.url.path)
        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code: str | None = None

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        except Exception:
            status_code = "500"
            raise
        finally:
            duration = time.monotonic() - start
            ACTIVE_REQUESTS.dec()
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code if status_code is not None else "500",
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

        return response
