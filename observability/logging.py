"""
Logging setup for the discovery engine.

Every record carries the id of the discovery run it belongs to, so the
interleaved output of concurrent provider tasks can be untangled. Provider
credentials never reach a handler.

Usage:
    from observability import setup_logging, correlation_id_context

    setup_logging()
    with correlation_id_context():
        logger.info("[Aggregator] Discovery started")
"""

import logging
import os
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "expense-alternatives"
REDACTED = "[REDACTED]"

_run_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return _run_id.get()


def new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:16]}"


@contextmanager
def correlation_id_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a run id for the block; tasks created inside inherit it."""
    token = _run_id.set(correlation_id or new_run_id())
    try:
        yield _run_id.get()
    finally:
        _run_id.reset(token)


class RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


class CredentialFilter(logging.Filter):
    """Blanks credential-looking fields passed through ``extra`` or dict args."""

    CREDENTIAL_FIELDS = frozenset({
        "api_key", "token", "secret", "authorization", "x-api-key",
        "x-subscription-token", "openai_api_key", "brave_api_key",
        "serper_api_key", "firecrawl_api_key", "google_places_api_key",
    })

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = self._scrub(record.args)
        for name in self.CREDENTIAL_FIELDS & set(record.__dict__):
            setattr(record, name, REDACTED)
        return True

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: REDACTED if str(key).lower() in self.CREDENTIAL_FIELDS else self._scrub(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self._scrub(item) for item in value)
        return value


class DiscoveryJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("level", record.levelname)
        log_record["service"] = SERVICE_NAME
        log_record["run_id"] = getattr(record, "correlation_id", "-")
        if record.exc_info and "exception" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return DiscoveryJsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    return logging.Formatter(
        "%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Replace the root logger's handlers with a single stream handler.

    ``LOG_LEVEL`` (default INFO) and ``LOG_FORMAT`` (``json`` or ``text``,
    default text) are read from the environment when not passed.
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.getenv("LOG_FORMAT", "text")).lower()

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(log_format))
    handler.addFilter(RunIdFilter())
    handler.addFilter(CredentialFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    # chatty at INFO
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
