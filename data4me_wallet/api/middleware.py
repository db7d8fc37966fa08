"""Request tracing, access logging and latency metrics"""

import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from data4me_wallet.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"
UNTRACKED_PATHS = {"/metrics", "/health"}


def route_label(request: Request) -> str:
    """Route template ("/v1/users/{user_id}") so ids don't explode label cardinality"""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an id for log correlation.

    An inbound X-Request-ID (from a proxy or the caller) is kept, otherwise a
    fresh UUID is issued. The id is echoed in the response header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in UNTRACKED_PATHS:
            logging.info(
                "Request handled",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": route_label(request),
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Observe HTTP latency per method, route and status"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)

        if request.url.path not in UNTRACKED_PATHS:
            request_duration_histogram.labels(
                method=request.method,
                endpoint=route_label(request),
                status=response.status_code,
            ).observe(time.perf_counter() - started)
        return response
