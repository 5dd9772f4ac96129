"""Connection pool counters for the profile database, reported through telemetry."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine

from ..telemetry import emit_event


@dataclass
class PoolCounters:
    connects: int = 0
    checkouts: int = 0
    checkins: int = 0
    last_emitted: Optional[float] = None

    @property
    def in_use(self) -> int:
        return max(self.checkouts - self.checkins, 0)

    def as_dict(self) -> Dict[str, int]:
        return {
            "connects": self.connects,
            "checkouts": self.checkouts,
            "checkins": self.checkins,
            "in_use": self.in_use,
        }


# (pool event, counter attribute, telemetry label or None when the event is only counted)
_TRACKED: Tuple[Tuple[str, str, Optional[str]], ...] = (
    ("connect", "connects", "db_pool_connect"),
    ("checkout", "checkouts", "db_pool_checkout"),
    ("checkin", "checkins", None),
)

_COUNTERS: Dict[int, PoolCounters] = {}
_TELEMETRY_INTERVAL = float(os.getenv("PORTFOLIO_DB_TELEMETRY_INTERVAL", "60"))


def _due(counters: PoolCounters, now: float) -> bool:
    if _TELEMETRY_INTERVAL <= 0 or counters.last_emitted is None:
        return True
    return now - counters.last_emitted >= _TELEMETRY_INTERVAL


def _listener(engine: Engine, counters: PoolCounters, attribute: str, label: Optional[str]) -> Callable[..., None]:
    def on_pool_event(*_: Any) -> None:
        setattr(counters, attribute, getattr(counters, attribute) + 1)
        if label is None:
            return
        now = time.monotonic()
        if not _due(counters, now):
            return
        counters.last_emitted = now
        emit_event("db_pool_status", event=label, status=_pool_status(engine), **counters.as_dict())

    return on_pool_event


def instrument_engine(engine: Engine) -> None:
    """Attach pool listeners once per engine; emissions are throttled by PORTFOLIO_DB_TELEMETRY_INTERVAL."""
    if id(engine) in _COUNTERS:
        return
    counters = _COUNTERS[id(engine)] = PoolCounters()
    for pool_event, attribute, label in _TRACKED:
        event.listen(engine, pool_event, _listener(engine, counters, attribute, label))


def forget_engine(engine: Engine) -> None:
    _COUNTERS.pop(id(engine), None)


def get_pool_snapshot(engine: Engine) -> Dict[str, object]:
    counters = _COUNTERS.get(id(engine), PoolCounters())
    return {"status": _pool_status(engine), **counters.as_dict()}


def _pool_status(engine: Engine) -> str:
    try:
        return engine.pool.status()  # type: ignore[no-untyped-call]
    except Exception as exc:  # pragma: no cover
        return f"unavailable: {exc}"


__all__ = ["PoolCounters", "forget_engine", "get_pool_snapshot", "instrument_engine"]
