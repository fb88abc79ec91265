"""Logging bootstrap: JSON for Cloud Logging, plain text for terminals.

Every record carries the id of the HTTP request it was emitted under, so
extraction warnings from worker threads can be matched to the upload that
caused them.
"""

from __future__ import annotations

import contextvars
import logging
import os
import uuid

from pythonjsonlogger.json import JsonFormatter

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

# Cloud Logging has no NOTSET; anything without a level is DEFAULT
_SEVERITY_OVERRIDES = {"NOTSET": "DEFAULT"}


def bind_request_id(request_id: str) -> contextvars.Token[str | None]:
    return _request_id.set(request_id)


def reset_request_id(token: contextvars.Token[str | None]) -> None:
    _request_id.reset(token)


def current_request_id() -> str | None:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get() or "-"
        return True


class GCPJsonFormatter(JsonFormatter):
    """JSON formatter emitting Cloud Logging's ``severity`` key."""

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["severity"] = _SEVERITY_OVERRIDES.get(record.levelname, record.levelname)
        log_record.pop("levelname", None)


def setup_logging(*, level: str = "INFO", json_logs: bool | None = None) -> None:
    """Configure the root logger.

    JSON is used on Cloud Run or when ``DOCPROC_LOG_FORMAT=json``; plain text
    otherwise. Calling it again replaces the previous handler.
    """
    if json_logs is None:
        json_logs = bool(os.getenv("K_SERVICE")) or os.getenv("DOCPROC_LOG_FORMAT", "").lower() == "json"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if json_logs:
        handler.setFormatter(GCPJsonFormatter(
            fmt="%(message)s %(name)s %(funcName)s %(lineno)d %(request_id)s",
            rename_fields={"name": "logger"},
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s:%(lineno)d  %(message)s",
            datefmt="%H:%M:%S",
        ))

    root.addHandler(handler)


def generate_request_id() -> str:
    """Generate a unique request ID for trace correlation."""
    return uuid.uuid4().hex[:16]
