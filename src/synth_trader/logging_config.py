"""JSON logging for the order form and submission engine.

Every line carries a stable ``event`` name plus the trade it concerns
(``base``/``quote`` pair, ``order_type``, ledger ``tx_id``), so a single
order can be followed from validation through submission to its ledger
record.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import IO, Any, Dict

DEFAULT_ENV = os.getenv("SYNTH_TRADER_ENV", os.getenv("ENV", "local"))

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter emitting the event, environment and trade identifiers.

    Values passed through the logging ``extra`` dictionary are preserved so
    callers can attach contextual identifiers (``event``, ``base``, ``quote``,
    ``wallet``, ``tx_id``) without them being dropped. ``event`` is a short,
    machine-readable label for the line. Values that are not JSON native
    (``Decimal``, enums) are rendered with ``str``.
    """

    def __init__(self, env: str | None = None) -> None:
        super().__init__()
        self.env = env or DEFAULT_ENV

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_time = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": log_time.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "event": getattr(record, "event", None),
            "env": getattr(record, "env", self.env),
            "request_id": getattr(record, "request_id", None),
            "order_type": getattr(record, "order_type", None),
            "tx_id": getattr(record, "tx_id", None),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS:
                continue
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(
    level: int | str = logging.INFO,
    env: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Install the JSON handler on the root logger.

    ``level`` may be a level name such as ``AppConfig.log_level``. Order
    engine loggers live under ``synth_trader`` and propagate to the root.
    """

    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter(env=env))
    root_logger.addHandler(handler)


def structured_log_extra(
    *,
    env: str | None = None,
    request_id: str | None = None,
    event: str | None = None,
    base: str | None = None,
    quote: str | None = None,
    wallet: str | None = None,
    tx_id: int | None = None,
    order_type: str | None = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Build a consistent set of logging extras with common fields.

    The ``event`` key should be a short, stable identifier for the log. The
    trade identifiers (``base``, ``quote``, ``wallet``, ``tx_id``,
    ``order_type``) are optional; when omitted they are absent from the
    resulting ``extra`` dict. Additional custom fields are preserved via
    ``**kwargs``.
    """

    extra: Dict[str, Any] = {
        "event": kwargs.pop("event", event),
        "env": env or DEFAULT_ENV,
        "request_id": request_id,
    }

    identifier_fields = {
        "base": base,
        "quote": quote,
        "wallet": wallet,
        "tx_id": tx_id,
        "order_type": order_type,
    }
    for key, value in identifier_fields.items():
        if value is not None:
            extra[key] = value

    extra.update(kwargs)
    return extra


def get_log_environment() -> str:
    """Expose the configured environment for downstream helpers."""

    return DEFAULT_ENV


__all__: list[str] = [
    "JsonFormatter",
    "configure_logging",
    "structured_log_extra",
    "get_log_environment",
]
