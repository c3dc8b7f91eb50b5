import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Optional

from app.core.context import get_request_id
from app.core.settings import settings

AUDIT_LOGGER_NAME = "app.audit"

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Values passed through ``extra=`` (loan ids, actor ids, status moves) are
    copied to the top level so log shippers can index them.
    """

    def __init__(self, stream_label: str = "app") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "stream": self.stream_label,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _handler(formatter: str, level: str) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": formatter,
        "filters": ["request_context"],
        "stream": "ext://sys.stdout",
    }


def build_logging_config(level: str) -> dict[str, Any]:
    loggers: dict[str, Any] = {
        "": {"handlers": ["default"], "level": level},
        AUDIT_LOGGER_NAME: {"handlers": ["audit"], "level": "INFO", "propagate": False},
        # SQL echo only when explicitly debugging
        "sqlalchemy.engine": {"level": "INFO" if level == "DEBUG" else "WARNING"},
    }
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        loggers[name] = {"handlers": ["default"], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_context": {"()": RequestContextFilter}},
        "formatters": {
            "json": {"()": JsonFormatter, "stream_label": "app"},
            "audit_json": {"()": JsonFormatter, "stream_label": "audit"},
        },
        "handlers": {
            "default": _handler("json", level),
            "audit": _handler("audit_json", "INFO"),
        },
        "loggers": loggers,
    }


def configure_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(build_logging_config(log_level))
    logging.getLogger(__name__).info("Logging configured", extra={"environment": settings.environment})


def get_audit_logger() -> logging.Logger:
    """Logger for decisions on loans and user accounts; always emitted at INFO."""
    return logging.getLogger(AUDIT_LOGGER_NAME)
