"""
Request timing middleware.

Every response carries X-Request-ID (propagated from the caller when sent)
and X-Request-Duration-Ms. One log line per API call is written with the
acting user and, for suggestion routes, the suggestion id, so an admin
edit and the side effects it dispatched can be correlated in the logs.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

# Load-balancer probes
_QUIET_PATHS = frozenset({"/api/v1/health", "/api/v1/health/ready", "/api/v1/health/live"})

SLOW_REQUEST_MS = 1000


def _request_extra(response, duration_ms: float) -> dict:
    actor = getattr(g, "actor", None)
    return {
        "method": request.method,
        "path": request.path,
        "status": response.status_code,
        "duration_ms": round(duration_ms, 1),
        "request_id": g.request_id,
        "user_id": actor.user_id if actor else None,
        "suggestion_id": (request.view_args or {}).get("suggestion_id"),
    }


def init_request_timing(app: Flask):
    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        if request.path in _QUIET_PATHS:
            return response

        extra = _request_extra(response, duration_ms)
        if response.status_code >= 500:
            level = logging.ERROR
        elif duration_ms > SLOW_REQUEST_MS:
            level = logging.WARNING
        else:
            level = logging.DEBUG
        logger.log(level, "%s %s -> %d (%.0fms)",
                   request.method, request.path, response.status_code, duration_ms, extra=extra)
        return response
