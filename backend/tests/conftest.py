from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

os.environ.setdefault("PORTFOLIO_DATABASE_URL", "sqlite://")
os.environ["PORTFOLIO_RATE_LIMIT_ENABLED"] = "false"
os.environ["PORTFOLIO_DATABASE_AUTO_CREATE"] = "false"

from portfolio_api.config import get_settings  # noqa: E402
from portfolio_api.db.session import create_schema, dispose_engine  # noqa: E402


@pytest.fixture()
def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    db_path = tmp_path / "portfolio.db"
    monkeypatch.setenv("PORTFOLIO_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("PORTFOLIO_PERSISTENCE_MODE", "database")
    get_settings.cache_clear()
    dispose_engine()
    create_schema()
    yield db_path
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture()
def profile_payload() -> dict:
    return {
        "name": "Ann Example",
        "email": "ann@example.com",
        "education": [
            {
                "course": "B.Sc. Computer Science",
                "institute": "State University",
                "startedAt": "2018-09-01",
                "completedAt": "2022-06-30",
            },
            {
                "course": "M.Sc. Distributed Systems",
                "institute": "Tech Institute",
                "startedAt": "2023-09-01",
                "ongoing": True,
            },
        ],
        "skills": ["Go", "React", "SQL", "Python"],
        "projects": [
            {
                "title": "React Project",
                "description": "Dashboard for tracking habits",
                "skills": ["React", "TypeScript"],
                "links": {"github": "https://github.com/ann/habits"},
            },
            {
                "title": "Ledger",
                "description": "Double-entry bookkeeping API",
                "skills": ["Go", "SQL"],
                "links": {"live": "https://ledger.example.com"},
            },
            {
                "title": "Crawler",
                "description": "Polite web crawler with a django admin",
                "skills": ["Python"],
            },
        ],
        "work": [{"role": "Backend Engineer", "company": "Acme", "duration": "2022-2024"}],
        "links": {
            "github": "https://github.com/ann",
            "linkedin": "https://linkedin.com/in/ann",
            "portfolio": "https://ann.example.com",
        },
    }
