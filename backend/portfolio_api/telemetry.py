"""Structured telemetry events for profile writes and database pool activity."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List

logger = logging.getLogger("portfolio.telemetry")

Listener = Callable[["TelemetryEvent"], None]


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


_listeners: List[Listener] = []
_lock = RLock()


def register_listener(listener: Listener) -> None:
    with _lock:
        _listeners.append(listener)


def unregister_listener(listener: Listener) -> None:
    with _lock:
        if listener in _listeners:
            _listeners.remove(listener)


@contextmanager
def capture_events() -> Iterator[List[TelemetryEvent]]:
    """Collect every event emitted inside the block."""
    captured: List[TelemetryEvent] = []
    register_listener(captured.append)
    try:
        yield captured
    finally:
        unregister_listener(captured.append)


def emit_event(name: str, **fields: Any) -> None:
    """Emit a structured event, fan it out to listeners and log it as JSON."""
    payload = {key: _plain(value) for key, value in fields.items()}
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **payload}, default=str))


def _plain(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


__all__ = [
    "TelemetryEvent",
    "capture_events",
    "emit_event",
    "register_listener",
    "unregister_listener",
]
