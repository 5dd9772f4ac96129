"""HTTP client for the portfolio profile API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Dict, List, Optional, Type

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:5000"


class PortfolioAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class SearchResults:
    skills: List[str] = field(default_factory=list)
    projects: List[Dict[str, Any]] = field(default_factory=list)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason_phrase


class PortfolioAPIClient:
    """Thin wrapper over the profile routes; every failure surfaces as PortfolioAPIError."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "PortfolioAPIClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise PortfolioAPIError(
                f"HTTP {status_code}: {_error_message(exc.response)}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise PortfolioAPIError(f"Request to {path} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise PortfolioAPIError(f"{path} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise PortfolioAPIError(f"{path} returned an unexpected payload")
        return data

    def fetch_profile(self) -> Optional[Dict[str, Any]]:
        profile = self._get("/profile").get("profile")
        return profile if isinstance(profile, dict) else None

    def fetch_top_skills(self) -> List[str]:
        return list(self._get("/profile/skills/top").get("top") or [])

    def fetch_projects(self, skill: Optional[str] = None) -> List[Dict[str, Any]]:
        """Filtered projects for ``skill``; the full list from the profile when no skill is given."""
        if skill:
            return list(self._get("/profile/projects", params={"skill": skill}).get("projects") or [])
        profile = self.fetch_profile()
        return list((profile or {}).get("projects") or [])

    def search(self, query: str) -> SearchResults:
        data = self._get("/profile/search", params={"q": query})
        return SearchResults(
            skills=list(data.get("skills") or []),
            projects=list(data.get("projects") or []),
        )


__all__ = ["DEFAULT_BASE_URL", "PortfolioAPIClient", "PortfolioAPIError", "SearchResults"]
