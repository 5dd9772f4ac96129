from __future__ import annotations

from pathlib import Path

import pytest

from portfolio_api.config import Settings, get_settings
from portfolio_api.db import session as db_session


def test_sqlite_engines_allow_cross_thread_use() -> None:
    options = db_session.engine_options(Settings(PORTFOLIO_DATABASE_URL="sqlite:///./x.db"))
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in options


def test_server_engines_get_pool_sizing() -> None:
    settings = Settings(
        PORTFOLIO_DATABASE_URL="postgresql+psycopg://app@db/portfolio",
        PORTFOLIO_DATABASE_POOL_SIZE=4,
        PORTFOLIO_DATABASE_MAX_OVERFLOW=2,
    )
    options = db_session.engine_options(settings)
    assert options["pool_size"] == 4
    assert options["max_overflow"] == 2
    assert "connect_args" not in options


def test_missing_url_is_a_runtime_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTFOLIO_DATABASE_URL", "")
    get_settings.cache_clear()
    db_session.dispose_engine()
    try:
        with pytest.raises(RuntimeError, match="PORTFOLIO_DATABASE_URL"):
            db_session.get_engine()
    finally:
        get_settings.cache_clear()


def test_dispose_engine_rebuilds_from_fresh_settings(database: Path) -> None:
    first = db_session.get_engine()
    assert db_session.get_engine() is first
    db_session.dispose_engine()
    assert db_session.get_engine() is not first


def test_session_scope_rolls_back_on_error(database: Path) -> None:
    from portfolio_api.db.models import ProfileModel

    with pytest.raises(ValueError):
        with db_session.session_scope() as session:
            session.add(ProfileModel(id="portfolio", name="Ann", email="a@x.io"))
            session.flush()
            raise ValueError("abort")

    with db_session.session_scope(commit=False) as session:
        assert session.get(ProfileModel, "portfolio") is None
