"""Structured logging for ticket-ai.

Every line is one JSON object. Entity ids passed through the ``context`` extra
(session_id, ticket_id, agent_id) are lifted to the top level, so one
conversation or ticket can be followed with a plain grep.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Optional

LOGGER_NAMESPACE = "ticket_ai"
ENTITY_KEYS = ("session_id", "ticket_id", "agent_id")
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = dict(getattr(record, "context", None) or {})
        for key in ENTITY_KEYS:
            if context.get(key):
                entry[key] = context.pop(key)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", stream: Optional[IO[str]] = None) -> None:
    """Send everything through one JSON handler. Unknown level names mean INFO."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


class ContextAdapter(logging.LoggerAdapter):
    """Adds a fixed context (e.g. the session of a user turn) to every record.

    Per-call fields go in ``context=...``; they win over the fixed ones.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = {**(self.extra or {}), **(kwargs.pop("context", None) or {})}
        if context:
            kwargs["extra"] = {**kwargs.get("extra", {}), "context": context}
        return msg, kwargs
