"""Database-backed portfolio profile repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..db.base import utcnow
from ..db.models import ProfileAuditEventModel, ProfileModel
from ..portfolio_profile import PROFILE_KEY, Profile, ProfileUpdate

# Dialects that can express the singleton write as one INSERT ... ON CONFLICT statement.
_UPSERT_INSERTS: Dict[str, Callable[..., Any]] = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def _insert_defaults() -> Dict[str, Any]:
    return {"education": [], "skills": [], "projects": [], "work": [], "links": None}


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProfileRepository:
    """Reads and atomically upserts the singleton profile row."""

    def get(self, session: Session) -> Profile | None:
        model = session.get(ProfileModel, PROFILE_KEY)
        if model is None:
            return None
        return self._to_domain(model)

    def upsert(self, session: Session, update: ProfileUpdate) -> Profile:
        values = update.column_values()
        now = utcnow()
        insert_factory = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
        if insert_factory is not None:
            row = {**_insert_defaults(), **values, "id": PROFILE_KEY, "created_at": now, "updated_at": now}
            stmt = insert_factory(ProfileModel).values(**row)
            stmt = stmt.on_conflict_do_update(
                index_elements=[ProfileModel.id],
                set_={**values, "updated_at": now},
            )
            session.execute(stmt)
        else:
            model = session.get(ProfileModel, PROFILE_KEY, with_for_update=True)
            if model is None:
                model = ProfileModel(id=PROFILE_KEY, created_at=now, **_insert_defaults())
                session.add(model)
            for key, value in values.items():
                setattr(model, key, value)
            model.updated_at = now
        session.flush()

        self._record_audit(session, "profile_upsert", {"fields": sorted(values)})
        session.flush()
        stmt = (
            select(ProfileModel)
            .where(ProfileModel.id == PROFILE_KEY)
            .execution_options(populate_existing=True)
        )
        return self._to_domain(session.execute(stmt).scalar_one())

    def _to_domain(self, model: ProfileModel) -> Profile:
        return Profile.model_validate(
            {
                "id": model.id,
                "name": model.name,
                "email": model.email,
                "education": model.education or [],
                "skills": model.skills or [],
                "projects": model.projects or [],
                "work": model.work or [],
                "links": model.links,
                "created_at": _aware(model.created_at),
                "updated_at": _aware(model.updated_at),
            }
        )

    def _record_audit(self, session: Session, event_type: str, payload: Dict[str, Any]) -> None:
        session.add(
            ProfileAuditEventModel(
                profile_id=PROFILE_KEY,
                event_type=event_type,
                payload=payload,
                actor="api",
            )
        )


profile_repository = ProfileRepository()

__all__ = ["ProfileRepository", "profile_repository"]
