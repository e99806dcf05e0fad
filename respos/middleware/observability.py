from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from respos.core.request_context import bind_request, clear_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _caller_fields(request: Request) -> dict:
    # request.state.user is set by get_current_user; public routes leave it empty
    caller = getattr(request.state, "user", None)
    uoid = getattr(caller, "uoid", None)
    uid = getattr(caller, "uid", None)
    return {
        "org_id": str(uoid) if uoid is not None else None,
        "user_id": str(uid) if uid is not None else None,
    }


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and emit one access record when it finishes."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_request(request_id)
        started = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            logger.info(
                "request completed",
                extra={
                    "request_id": request_id,
                    "endpoint": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    **_caller_fields(request),
                },
            )
            clear_request_context()
