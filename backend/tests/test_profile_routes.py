from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from portfolio_api.errors import ProfileStoreError
from portfolio_api.main import app


@pytest.fixture()
def client(database: Path) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def seeded(client: TestClient, profile_payload: dict) -> TestClient:
    response = client.put("/profile", json=profile_payload)
    assert response.status_code == 200
    return client


class _BrokenStore:
    mode = "database"

    def get(self):
        raise ProfileStoreError("connection refused")

    def upsert(self, update):
        raise ProfileStoreError("connection refused")


def test_get_profile_is_null_before_first_save(client: TestClient) -> None:
    response = client.get("/profile")
    assert response.status_code == 200
    assert response.json() == {"profile": None}


def test_put_then_get_returns_whitelisted_camel_case_document(client: TestClient, profile_payload: dict) -> None:
    body = {**profile_payload, "isAdmin": True, "_id": "hijack", "createdAt": "1999-01-01T00:00:00Z"}
    response = client.put("/profile", json=body)

    assert response.status_code == 200
    saved = response.json()
    assert saved["success"] is True
    assert saved["message"] == "Profile updated successfully"
    assert "isAdmin" not in saved["profile"]
    assert saved["profile"]["id"] == "portfolio"
    assert not saved["profile"]["createdAt"].startswith("1999")

    fetched = client.get("/profile").json()["profile"]
    assert fetched == saved["profile"]
    assert fetched["education"][0]["startedAt"] == "2018-09-01"
    assert fetched["education"][1]["completedAt"] is None
    assert fetched["links"]["linkedin"] == "https://linkedin.com/in/ann"


def test_repeated_put_is_idempotent(client: TestClient, profile_payload: dict) -> None:
    first = client.put("/profile", json=profile_payload).json()["profile"]
    second = client.put("/profile", json=profile_payload).json()["profile"]
    first.pop("updatedAt")
    second.pop("updatedAt")
    assert first == second


def test_put_only_replaces_supplied_fields(seeded: TestClient) -> None:
    response = seeded.put("/profile", json={"name": "Ann Example", "email": "ann@example.com", "skills": ["Rust"]})
    assert response.status_code == 200
    profile = seeded.get("/profile").json()["profile"]
    assert profile["skills"] == ["Rust"]
    assert len(profile["projects"]) == 3


@pytest.mark.parametrize(
    "body",
    [
        {"email": "ann@example.com"},
        {"name": "Ann"},
        {"name": " ", "email": "ann@example.com"},
        {},
    ],
)
def test_put_without_name_or_email_is_rejected(client: TestClient, body: dict) -> None:
    response = client.put("/profile", json=body)
    assert response.status_code == 400
    assert response.json() == {"message": "Name and email are required"}
    assert client.get("/profile").json() == {"profile": None}


def test_put_with_invalid_nested_value_is_rejected(client: TestClient) -> None:
    response = client.put(
        "/profile",
        json={"name": "Ann", "email": "a@x.io", "education": [{"course": "CS", "institute": "Uni"}]},
    )
    assert response.status_code == 400
    assert "education.0" in response.json()["message"]


def test_put_with_non_object_body_is_rejected(client: TestClient) -> None:
    response = client.put("/profile", json=["Ann", "a@x.io"])
    assert response.status_code == 400
    assert response.json() == {"message": "Request body must be a JSON object"}


def test_projects_without_skill_match_stored_projects(seeded: TestClient) -> None:
    projects = seeded.get("/profile/projects").json()["projects"]
    stored = seeded.get("/profile").json()["profile"]["projects"]
    assert projects == stored
    assert seeded.get("/profile/projects", params={"skill": "  "}).json()["projects"] == stored


def test_projects_filter_by_skill_case_insensitively(seeded: TestClient) -> None:
    response = seeded.get("/profile/projects", params={"skill": "react"})
    assert response.status_code == 200
    titles = [project["title"] for project in response.json()["projects"]]
    assert titles == ["React Project"]
    assert seeded.get("/profile/projects", params={"skill": "Reac"}).json() == {"projects": []}


def test_projects_is_empty_without_profile(client: TestClient) -> None:
    assert client.get("/profile/projects", params={"skill": "Go"}).json() == {"projects": []}


def test_top_skills_returns_stored_order(seeded: TestClient) -> None:
    assert seeded.get("/profile/skills/top").json() == {"top": ["Go", "React", "SQL", "Python"]}


def test_top_skills_is_empty_without_profile(client: TestClient) -> None:
    assert client.get("/profile/skills/top").json() == {"top": []}


def test_search_matches_skills_and_projects(seeded: TestClient) -> None:
    response = seeded.get("/profile/search", params={"q": "go"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["skills"] == ["Go"]
    # "Ledger" lists Go; "Crawler" mentions django in its description.
    assert [project["title"] for project in payload["projects"]] == ["Ledger", "Crawler"]


def test_search_matches_project_title(seeded: TestClient) -> None:
    payload = seeded.get("/profile/search", params={"q": "REACT PROJ"}).json()
    assert payload["skills"] == []
    assert [project["title"] for project in payload["projects"]] == ["React Project"]


@pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
def test_search_requires_query(seeded: TestClient, params: dict) -> None:
    response = seeded.get("/profile/search", params=params)
    assert response.status_code == 400
    assert response.json() == {"message": "Search query is required"}


def test_search_without_profile_is_empty(client: TestClient) -> None:
    assert client.get("/profile/search", params={"q": "go"}).json() == {"skills": [], "projects": []}


@pytest.mark.parametrize(
    ("method", "path", "message"),
    [
        ("get", "/profile", "Failed to fetch profile"),
        ("get", "/profile/projects", "Failed to fetch projects"),
        ("get", "/profile/skills/top", "Failed to fetch top skills"),
        ("get", "/profile/search?q=go", "Failed to search profile"),
    ],
)
def test_store_failures_return_500(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, method: str, path: str, message: str
) -> None:
    monkeypatch.setattr("portfolio_api.profile_routes.profile_store", _BrokenStore())
    response = getattr(client, method)(path)
    assert response.status_code == 500
    assert response.json() == {"message": message}


def test_put_store_failure_returns_500(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, profile_payload: dict
) -> None:
    monkeypatch.setattr("portfolio_api.profile_routes.profile_store", _BrokenStore())
    response = client.put("/profile", json=profile_payload)
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to save profile"}


def test_unknown_route_uses_message_envelope(client: TestClient) -> None:
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}


def test_cors_allows_any_origin_by_default(client: TestClient) -> None:
    response = client.get("/profile", headers={"Origin": "https://viewer.example.com"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_blank_search_is_rejected_before_reading_the_store(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("portfolio_api.profile_routes.profile_store", _BrokenStore())
    response = client.get("/profile/search", params={"q": "  "})
    assert response.status_code == 400
    assert response.json() == {"message": "Search query is required"}


def test_search_validation_from_query_engine_maps_to_400(
    seeded: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    # The engine validates the term on its own even if the route-level check lets it through.
    monkeypatch.setattr("portfolio_api.profile_routes.require_query", lambda query: query)
    response = seeded.get("/profile/search", params={"q": "   "})
    assert response.status_code == 400
    assert response.json() == {"message": "Search query is required"}
