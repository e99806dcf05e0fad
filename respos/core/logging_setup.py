from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import sys
from datetime import datetime, timezone

from respos.core.config import LOG_LEVEL
from respos.core.request_context import current_context

_SECRETS = re.compile(
    r"(authorization\s*[:=]\s*bearer\s+|(?:token|password|secret)\s*[:=]\s*)([^\s\",}]+)",
    re.IGNORECASE,
)

_OPTIONAL_FIELDS = ("endpoint", "method", "status_code", "error_code")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

logger = logging.getLogger(__name__)


def mask_secrets(text: str) -> str:
    return _SECRETS.sub(r"\1***", text)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the request and caller ids."""

    def format(self, record: logging.LogRecord) -> str:
        context = current_context()
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", None) or context.request_id,
            "org_id": getattr(record, "org_id", None) or context.org_id,
            "user_id": getattr(record, "user_id", None) or context.user_id,
            "module": record.name,
            "message": mask_secrets(record.getMessage()),
            "duration_ms": getattr(record, "duration_ms", None),
        }
        entry.update(
            (field, getattr(record, field))
            for field in _OPTIONAL_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info:
            entry["exception"] = mask_secrets(self.formatException(record.exc_info))
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(LOG_LEVEL)
    for name in _UVICORN_LOGGERS:
        logging.getLogger(name).setLevel(LOG_LEVEL)


def _log_uncaught_exception(exc_type, exc_value, exc_traceback) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.critical("uncaught exception, terminating", exc_info=(exc_type, exc_value, exc_traceback))


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    logger.critical(
        "unhandled asynchronous error, terminating: %s",
        context.get("message"),
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )
    os._exit(1)


def install_process_fault_handlers(loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Faults that escape request handling are fatal; an external supervisor restarts us."""
    sys.excepthook = _log_uncaught_exception
    if loop is not None:
        loop.set_exception_handler(_log_loop_exception)
