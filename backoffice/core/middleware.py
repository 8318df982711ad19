"""CORS, request-id, access-log and metrics middleware."""

import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from backoffice.core.config import settings
from backoffice.core.logging_config import get_logger, request_id_var

logger = get_logger("http")

REQUEST_ID_HEADER = "X-Request-Id"

registry = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route", "status"],
    buckets=[0.01, 0.05, 0.1, 0.3, 0.5, 1, 2, 5],
    registry=registry,
)


def route_template(request: Request) -> str:
    """Path template of the matched route (``.../users/{user_id}``, never the id); ``unmatched`` otherwise."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id to every request/response and write one access log line."""

    async def dispatch(self, request: Request, call_next):
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        request_id = incoming or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()
        try:
            response: Response = await call_next(request)
            duration = time.perf_counter() - start_time
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Response-Time-Ms"] = str(round(duration * 1000, 2))

            logger.info(
                "http_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round(duration * 1000, 2),
                },
            )
            if settings.METRICS_ENABLED:
                http_request_duration_seconds.labels(
                    method=request.method,
                    route=route_template(request),
                    status=str(response.status_code),
                ).observe(duration)
            return response
        finally:
            request_id_var.reset(token)


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID + timing + metrics
    app.add_middleware(RequestContextMiddleware)
