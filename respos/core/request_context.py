"""Per-request identity that log records pick up without threading it through calls."""
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RequestContext:
    request_id: str | None = None
    org_id: str | None = None
    user_id: str | None = None


_EMPTY = RequestContext()
_current: ContextVar[RequestContext] = ContextVar("respos_request_context", default=_EMPTY)


def current_context() -> RequestContext:
    return _current.get()


def bind_request(request_id: str) -> None:
    """Start a fresh context for an incoming request."""
    _current.set(RequestContext(request_id=request_id))


def bind_caller(*, org_id: int | None, user_id: int | None) -> None:
    """Attach the authenticated caller once the bearer token has been read."""
    _current.set(
        replace(
            _current.get(),
            org_id=str(org_id) if org_id is not None else None,
            user_id=str(user_id) if user_id is not None else None,
        )
    )


def clear_request_context() -> None:
    _current.set(_EMPTY)
