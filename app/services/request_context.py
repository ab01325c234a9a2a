from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel

_current_request_id: ContextVar[str | None] = ContextVar("taleforge_request_id", default=None)
_logger = logging.getLogger("taleforge.api")


def new_request_id() -> str:
    return uuid.uuid4().hex


def current_request_id() -> str | None:
    return _current_request_id.get()


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Binds a request id to everything logged inside the block."""
    request_id = (request_id or "").strip() or new_request_id()
    token = _current_request_id.set(request_id)
    try:
        yield request_id
    finally:
        _current_request_id.reset(token)


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Writes one JSON log line tagged with the current request id."""
    record: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "level": logging.getLevelName(level),
        "event": event,
        "request_id": fields.pop("request_id", None) or current_request_id(),
    }
    for key, value in fields.items():
        if value is not None:
            record[key] = value
    _logger.log(level, json.dumps(record, ensure_ascii=False, default=_encode))
