"""Print a JSON snapshot of database reachability, pool counters and profile state."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import func, select

from portfolio_api.db.models import ProfileAuditEventModel
from portfolio_api.db.monitoring import get_pool_snapshot
from portfolio_api.db.session import get_engine, session_scope
from portfolio_api.portfolio_profile import profile_store

LOGGER = logging.getLogger("portfolio.db_metrics")


def collect_metrics() -> Dict[str, Any]:
    profile = profile_store.get()
    with session_scope(commit=False) as session:
        audit_events = session.scalar(select(func.count()).select_from(ProfileAuditEventModel)) or 0
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "pool": get_pool_snapshot(get_engine()),
        "profile_present": profile is not None,
        "profile_updated_at": profile.updated_at.isoformat() if profile and profile.updated_at else None,
        "audit_events": audit_events,
    }


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    try:
        metrics = collect_metrics()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Could not collect database metrics: %s", exc)
        return 1
    print(json.dumps(metrics))
    return 0


if __name__ == "__main__":
    sys.exit(main())
