"""Process-wide engine for the profile database and a transactional session helper."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from .monitoring import forget_engine, instrument_engine

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Keyword arguments for ``create_engine``; pool sizing only applies off SQLite."""
    options: Dict[str, Any] = {"echo": settings.database_echo, "future": True, "pool_pre_ping": True}
    if (settings.database_url or "").startswith("sqlite"):
        # Request handlers run in FastAPI's threadpool.
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(pool_size=settings.database_pool_size, max_overflow=settings.database_max_overflow)
    return options


def get_engine() -> Engine:
    global _engine, _session_factory
    if _engine is not None:
        return _engine

    settings = get_settings()
    if not settings.database_url:
        raise RuntimeError("PORTFOLIO_DATABASE_URL must be configured before using the database.")
    engine = create_engine(settings.database_url, **engine_options(settings))
    instrument_engine(engine)
    _session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    _engine = engine
    return engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None
    return _session_factory


@contextmanager
def session_scope(*, commit: bool = True) -> Iterator[Session]:
    """Yield a session that commits on success (unless ``commit=False``) and rolls back on error."""
    session = get_session_factory()()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


def create_schema() -> None:
    """Create missing tables directly; deployed databases go through Alembic."""
    from . import models  # noqa: F401
    from .base import Base

    Base.metadata.create_all(get_engine())


def dispose_engine() -> None:
    """Drop the cached engine so the next call picks up fresh settings."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        forget_engine(engine)
        engine.dispose()


__all__ = [
    "create_schema",
    "dispose_engine",
    "engine_options",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
