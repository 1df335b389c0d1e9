from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

_FALLBACK_RUN_ID = uuid.uuid4().hex


class JsonFormatter(logging.Formatter):
    """Render log records as structured JSON."""

    def __init__(self, component: str, context: Dict[str, Any] | None = None) -> None:
        super().__init__()
        self.component = component
        self._context: Dict[str, Any] = dict(context or {})

    def update_context(self, **context: Any) -> None:
        for key, value in context.items():
            if value is not None:
                self._context[key] = value

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "component": self.component,
            "run_id": os.getenv("CVH_RUN_ID") or _FALLBACK_RUN_ID,
        }
        payload.update(self._context)
        extra = getattr(record, "cvh_extra", None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                if value is not None:
                    payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(component: str, **context: Any) -> logging.Logger:
    """Configure and return a component-specific JSON logger.

    Records go to stderr: stdout is reserved for report lines.
    """

    logger = logging.getLogger(f"countervalue_history.{component}")
    # Other handlers (capture tools, host applications) may already be attached.
    formatter = next(
        (
            h.formatter
            for h in logger.handlers
            if isinstance(h.formatter, JsonFormatter)
        ),
        None,
    )
    if formatter is None:
        level_name = os.getenv("CVH_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level_name, logging.INFO))
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter(component, context))
        logger.addHandler(handler)
        logger.propagate = False
    else:
        formatter.update_context(**context)
    return logger


def log(logger: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """Emit a JSON structured log with optional extra fields."""

    logger.log(level, message, extra={"cvh_extra": fields})
