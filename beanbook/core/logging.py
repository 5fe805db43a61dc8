from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from .config import settings


def _json_default(value: Any) -> str:
    # Decimal money values and dates arrive through extra_data.
    return str(value)


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the request and caller in scope."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service
        request_id = request_id_ctx_var.get()
        if request_id:
            payload["request_id"] = request_id
        principal = principal_ctx_var.get()
        if principal:
            payload["principal"] = principal
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            # Fills gaps only; never overwrites the fields set above.
            for key, value in extra.items():
                payload.setdefault(key, value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=_json_default)


def setup_logging(level: str | int | None = None) -> None:
    """Route every logger through one JSON stream handler.

    ``level`` defaults to ``LOG_LEVEL`` from settings.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter(service=settings.APP_NAME))
    logging.root.handlers = [handler]
    resolved = level if level is not None else settings.LOG_LEVEL
    logging.root.setLevel(resolved.upper() if isinstance(resolved, str) else resolved)
