"""
Structured logging utilities for the domain ingestion pipeline.

Centralizes logging configuration so the CLI, the pipeline and the lookup/store
collaborators log consistently. Records carry their context (domain, action,
source feed, counts) through `extra=`; the console formatter appends the
pipeline's context keys to each line, the JSON formatter emits every extra
field (useful when runs are scheduled and their output is shipped somewhere).

Usage:
    from domain_ingest.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("Candidate persisted", extra={"domain": "example.com", "action": "inserted"})
    # 2025-08-23 01:00:00 | INFO | domain_ingest.pipeline | Candidate persisted [domain=example.com action=inserted]
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}

# Extra keys worth showing on a console line, in display order.
CONSOLE_CONTEXT_KEYS = ("domain", "action", "lookup", "source", "error")


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a single-line JSON object."""
    payload: Dict[str, Any] = {
        "ts": record.created,
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(_extra_fields(record))
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ContextFormatter(logging.Formatter):
    """Human formatter that appends the record's pipeline context as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        fields = _extra_fields(record)
        context = " ".join(
            f"{key}={fields[key]}" for key in CONSOLE_CONTEXT_KEYS if fields.get(key) is not None
        )
        if not context:
            return line
        head, sep, tail = line.partition("\n")
        return f"{head} [{context}]{sep}{tail}"


def _dict_config(level: str, formatter: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": ContextFormatter,
                "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "level": level,
            }
        },
        "loggers": {
            # httpx logs every request at INFO
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root logging for a CLI or scheduled run.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit one JSON object per record instead of console lines.
    force : bool
        Replace handlers installed by earlier configuration. With False, an
        already configured root logger is left untouched.
    """
    if not force and logging.getLogger().handlers:
        return
    logging.config.dictConfig(_dict_config(level.upper(), "json" if json_logs else "console"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["ContextFormatter", "JsonFormatter", "configure_logging", "get_logger"]
