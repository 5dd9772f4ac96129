"""Skill filtering and free-text search over profile documents.

Both operations are pure: they take JSON-shaped project mappings (as produced by
``Profile.to_document()``) and return new lists in the original document order.
Items with malformed fields are skipped rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import ProfileValidationError

ProjectDocument = Mapping[str, Any]


@dataclass
class SearchResult:
    skills: List[str] = field(default_factory=list)
    projects: List[Dict[str, Any]] = field(default_factory=list)


def normalize_term(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _lowered(value: Any) -> Optional[str]:
    return value.lower() if isinstance(value, str) else None


def _project_skills(project: ProjectDocument) -> Optional[List[str]]:
    skills = project.get("skills")
    if not isinstance(skills, list):
        return None
    return [lowered for lowered in (_lowered(skill) for skill in skills) if lowered is not None]


def filter_projects_by_skill(projects: Iterable[ProjectDocument], skill: Optional[str]) -> List[Any]:
    """Projects listing ``skill`` exactly (case-insensitive); all projects when blank."""
    term = normalize_term(skill)
    if not term:
        return list(projects)

    matched: List[Dict[str, Any]] = []
    for project in projects:
        if not isinstance(project, Mapping):
            continue
        skills = _project_skills(project)
        if skills is not None and term in skills:
            matched.append(dict(project))
    return matched


def _project_matches(project: Any, term: str) -> bool:
    if not isinstance(project, Mapping):
        return False
    for key in ("title", "description"):
        text = _lowered(project.get(key))
        if text is not None and term in text:
            return True
    skills = _project_skills(project) or []
    return any(term in skill for skill in skills)


def require_query(query: Optional[str]) -> str:
    """Normalized search term; raises ``ProfileValidationError`` when blank."""
    term = normalize_term(query)
    if not term:
        raise ProfileValidationError("Search query is required")
    return term


def search_profile(
    skills: Iterable[Any],
    projects: Iterable[ProjectDocument],
    query: Optional[str],
) -> SearchResult:
    """Unanchored substring search of skills and project title/description/skills.

    Raises ``ProfileValidationError`` when the query is blank.
    """
    term = require_query(query)
    matched_skills = [skill for skill in skills if term in (_lowered(skill) or "")]
    matched_projects = [dict(project) for project in projects if _project_matches(project, term)]
    return SearchResult(skills=matched_skills, projects=matched_projects)


__all__ = [
    "SearchResult",
    "filter_projects_by_skill",
    "normalize_term",
    "require_query",
    "search_profile",
]
