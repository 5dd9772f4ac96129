from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from portfolio_api.config import Settings
from portfolio_api.rate_limit import RATE_LIMIT_MESSAGE, build_limiter, install_rate_limiting


def _limited_app(limit: str, *, enabled: bool = True) -> FastAPI:
    settings = Settings(PORTFOLIO_RATE_LIMIT=limit, PORTFOLIO_RATE_LIMIT_ENABLED=enabled)
    app = FastAPI()
    install_rate_limiting(app, build_limiter(settings))

    @app.get("/ping")
    def ping() -> dict:
        return {"pong": True}

    return app


def test_requests_over_the_window_get_429() -> None:
    client = TestClient(_limited_app("2 per minute"))
    assert client.get("/ping").status_code == 200
    assert client.get("/ping").status_code == 200

    response = client.get("/ping")
    assert response.status_code == 429
    assert response.json() == {"message": RATE_LIMIT_MESSAGE}


def test_disabled_limiter_never_rejects() -> None:
    client = TestClient(_limited_app("1 per minute", enabled=False))
    assert all(client.get("/ping").status_code == 200 for _ in range(5))


def test_default_limit_is_one_hundred_per_fifteen_minutes(monkeypatch) -> None:
    monkeypatch.delenv("PORTFOLIO_RATE_LIMIT", raising=False)
    assert Settings().rate_limit == "100 per 15 minutes"
