"""Structured JSON logging for the loyalty API.

Every record is emitted as one JSON line carrying the service identity, the
active trace ids and any ``logger.bind``/keyword context. Context keys that
can hold member secrets are masked before serialization.
"""

from __future__ import annotations

import json
import logging
import sys
from logging import LogRecord
from typing import Any, Dict, Mapping

from loguru import logger
from opentelemetry import trace

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"password", "new_password", "otp_code", "jwt", "token", "authorization"})

# LogRecord attributes that are bookkeeping, not caller context
_STDLIB_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_QUIET_LOGGERS = ("uvicorn.access", "aiosqlite", "sqlalchemy.engine")


class InterceptHandler(logging.Handler):
    """Forward stdlib records (uvicorn, SQLAlchemy) to Loguru with their extras."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        context = {key: value for key, value in vars(record).items() if key not in _STDLIB_RECORD_FIELDS}
        message = record.getMessage().replace("{", "{{").replace("}", "}}")
        logger.bind(**context).opt(depth=6, exception=record.exc_info).log(level, message)


def redact(context: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: REDACTED if key.lower() in SENSITIVE_KEYS else value for key, value in context.items()}


def build_log_payload(record: Mapping[str, Any], metadata: Mapping[str, str]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "logger": record["name"],
        "service": metadata.get("service_name", "unknown"),
        "environment": metadata.get("environment", "unknown"),
        "version": metadata.get("version", "unknown"),
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = f"{span_context.trace_id:032x}"
        payload["span_id"] = f"{span_context.span_id:016x}"

    # context never overrides the envelope fields
    for key, value in redact(record["extra"]).items():
        payload.setdefault(key, value)

    exception = record.get("exception")
    if exception is not None and exception.type is not None:
        payload["exception"] = {"type": exception.type.__name__, "message": str(exception.value)}
    return payload


def configure_logging(*, service_name: str, environment: str, version: str, level: str = "INFO") -> None:
    """Send Loguru and stdlib logging to stdout as JSON lines."""

    metadata = {"service_name": service_name, "environment": environment, "version": version}

    def sink(message: "logger.Message") -> None:
        sys.stdout.write(json.dumps(build_log_payload(message.record, metadata), default=str) + "\n")

    logger.remove()
    logger.add(sink, level=level.upper(), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
