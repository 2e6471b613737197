# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
HTTP middleware: request ids, Prometheus metrics and the access log.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from secons.core.logging import get_logger
from secons.metrics.prometheus import HTTP_ERRORS, REQUEST_COUNT, REQUEST_LATENCY

logger = get_logger(__name__)

# Literal path segments; anything else is an id and becomes ``{id}``.
KNOWN_SEGMENTS = frozenset({
    "api", "v1", "auth", "me", "ga-status", "register-ga", "users",
    "announcements", "meetings", "notifications", "invitations", "validate",
    "send", "redeem", "teams", "seed", "points", "sports", "leaderboard",
    "finance", "stats", "dashboard", "events", "categories", "domains", "bulk",
    "matches", "chat", "threads", "messages", "read", "audit-logs",
})

UNTRACKED_PATHS = frozenset({
    "/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc",
})


def endpoint_label(path: str) -> str:
    segments = [s for s in path.split("/") if s]
    return "/" + "/".join(s if s in KNOWN_SEGMENTS else "{id}" for s in segments)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one, and echo it back."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        endpoint = endpoint_label(request.url.path)
        status = str(response.status_code)
        REQUEST_COUNT.labels(request.method, endpoint, status).inc()
        REQUEST_LATENCY.labels(request.method, endpoint).observe(elapsed)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(request.method, endpoint, status).inc()

        logger.info(
            "%s %s %s", request.method, endpoint, status,
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed * 1000, 1),
            },
        )
        return response
