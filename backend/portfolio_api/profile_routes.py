"""Profile REST endpoints consumed by the portfolio viewer."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query, status
from pydantic import BaseModel

from .errors import ProfileStoreError, ProfileValidationError
from .portfolio_profile import Profile, Project, build_profile_update, profile_store
from .profile_queries import filter_projects_by_skill, require_query, search_profile


router = APIRouter(prefix="/profile", tags=["profile"])
logger = logging.getLogger(__name__)


class ProfileEnvelope(BaseModel):
    profile: Optional[Profile] = None


class ProfileSaveResponse(BaseModel):
    success: bool = True
    message: str = "Profile updated successfully"
    profile: Profile


class ProjectListResponse(BaseModel):
    projects: List[Project]


class TopSkillsResponse(BaseModel):
    top: List[str]


class SearchResponse(BaseModel):
    skills: List[str]
    projects: List[Project]


def _load_profile(failure_message: str) -> Optional[Profile]:
    try:
        return profile_store.get()
    except ProfileStoreError as exc:
        logger.exception("Profile store read failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_message,
        ) from exc


@router.get("", response_model=ProfileEnvelope, status_code=status.HTTP_200_OK)
def get_profile() -> ProfileEnvelope:
    return ProfileEnvelope(profile=_load_profile("Failed to fetch profile"))


@router.put("", response_model=ProfileSaveResponse, status_code=status.HTTP_200_OK)
def put_profile(payload: Optional[Dict[str, Any]] = Body(default=None)) -> ProfileSaveResponse:
    try:
        update = build_profile_update(payload)
    except ProfileValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        profile = profile_store.upsert(update)
    except ProfileStoreError as exc:
        logger.exception("Profile store write failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save profile",
        ) from exc
    logger.info("Profile saved (fields=%s)", ",".join(sorted(update.changes())))
    return ProfileSaveResponse(profile=profile)


@router.get("/projects", response_model=ProjectListResponse, status_code=status.HTTP_200_OK)
def get_projects(
    skill: Optional[str] = Query(default=None, description="Only return projects tagged with this skill."),
) -> ProjectListResponse:
    profile = _load_profile("Failed to fetch projects")
    if profile is None:
        return ProjectListResponse(projects=[])
    document = profile.to_document()
    return ProjectListResponse(projects=filter_projects_by_skill(document["projects"], skill))


@router.get("/skills/top", response_model=TopSkillsResponse, status_code=status.HTTP_200_OK)
def get_top_skills() -> TopSkillsResponse:
    # The stored order is returned as-is; no ranking is applied.
    profile = _load_profile("Failed to fetch top skills")
    return TopSkillsResponse(top=list(profile.skills) if profile else [])


@router.get("/search", response_model=SearchResponse, status_code=status.HTTP_200_OK)
def search(
    q: Optional[str] = Query(default=None, description="Case-insensitive substring to look for."),
) -> SearchResponse:
    try:
        require_query(q)
        profile = _load_profile("Failed to search profile")
        if profile is None:
            return SearchResponse(skills=[], projects=[])
        document = profile.to_document()
        result = search_profile(document["skills"], document["projects"], q)
    except ProfileValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SearchResponse(skills=result.skills, projects=result.projects)


__all__ = ["router"]
