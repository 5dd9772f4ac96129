from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from portfolio_api.main import app


def test_health_endpoint() -> None:
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_database_health_endpoint_success(database: Path) -> None:
    client = TestClient(app)
    response = client.get("/health/database")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["persistence_mode"] == "database"
    assert "checkouts" in payload["pool"]


def test_database_health_endpoint_failure(database: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = TestClient(app)

    def raise_runtime_error():
        raise RuntimeError("missing database url")

    monkeypatch.setattr("portfolio_api.main.get_engine", raise_runtime_error)
    response = client.get("/health/database")
    assert response.status_code == 503
    assert response.json()["message"] == "missing database url"


def test_file_mode_health_reads_the_profile_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from portfolio_api.config import get_settings

    monkeypatch.setenv("PORTFOLIO_PERSISTENCE_MODE", "file")
    monkeypatch.setenv("PORTFOLIO_PROFILE_FILE", str(tmp_path / "profile.json"))
    get_settings.cache_clear()
    try:
        client = TestClient(app)
        response = client.get("/health/database")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "persistence_mode": "file", "pool": None}

        (tmp_path / "profile.json").write_text("[broken", encoding="utf-8")
        assert client.get("/health/database").status_code == 503
    finally:
        get_settings.cache_clear()
