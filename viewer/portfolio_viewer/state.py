"""Viewer state driven by skill clicks, searches and filter resets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .api_client import PortfolioAPIClient, PortfolioAPIError

logger = logging.getLogger(__name__)


@dataclass
class ProfileViewer:
    """Mirrors what the portfolio page shows.

    Only the initial profile fetch can put the viewer into the retry state;
    failures of the skill, project and search fetches are logged and leave the
    previous state in place. Requests run one at a time, so the last action
    always determines the visible projects.
    """

    api: PortfolioAPIClient
    profile: Optional[Dict[str, Any]] = None
    top_skills: List[str] = field(default_factory=list)
    projects: List[Dict[str, Any]] = field(default_factory=list)
    matched_skills: List[str] = field(default_factory=list)
    selected_skill: Optional[str] = None
    search_query: str = ""
    error: Optional[str] = None

    @property
    def needs_retry(self) -> bool:
        return self.error is not None and self.profile is None

    def load(self) -> None:
        self._load_profile()
        self._load_top_skills()
        self._load_projects(None)

    def retry(self) -> None:
        self.load()

    def select_skill(self, skill: str) -> None:
        self.search_query = ""
        self.matched_skills = []
        self._load_projects(skill)

    def submit_search(self, text: str) -> None:
        if not text.strip():
            self.clear_filters()
            return
        self.search_query = text
        try:
            results = self.api.search(text)
        except PortfolioAPIError as exc:
            logger.warning("Search error: %s", exc)
            return
        self.projects = results.projects
        self.matched_skills = results.skills
        self.selected_skill = None

    def clear_filters(self) -> None:
        self.selected_skill = None
        self.search_query = ""
        self.matched_skills = []
        self._load_projects(None)

    def _load_profile(self) -> None:
        try:
            self.profile = self.api.fetch_profile()
        except PortfolioAPIError as exc:
            logger.error("Profile fetch error: %s", exc)
            self.error = str(exc)
            return
        self.error = None

    def _load_top_skills(self) -> None:
        try:
            self.top_skills = self.api.fetch_top_skills()
        except PortfolioAPIError as exc:
            logger.warning("Skills fetch error: %s", exc)

    def _load_projects(self, skill: Optional[str]) -> None:
        try:
            self.projects = self.api.fetch_projects(skill)
        except PortfolioAPIError as exc:
            logger.warning("Projects fetch error: %s", exc)
            return
        self.selected_skill = skill


__all__ = ["ProfileViewer"]
