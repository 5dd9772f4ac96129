"""Portfolio profile document models, write whitelisting and the profile store."""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .db.session import session_scope
from .errors import ProfileStoreError, ProfileValidationError
from .telemetry import emit_event

logger = logging.getLogger(__name__)

PROFILE_KEY = "portfolio"
PROFILE_FIELDS = ("name", "email", "education", "skills", "projects", "work", "links")
LIST_FIELDS = ("education", "skills", "projects", "work")


if TYPE_CHECKING:
    from .repositories.profiles import ProfileRepository


def _repo() -> "ProfileRepository":
    from .repositories.profiles import profile_repository

    return profile_repository


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _Document(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class EducationEntry(_Document):
    course: str = Field(..., min_length=1)
    institute: str = Field(..., min_length=1)
    started_at: date
    completed_at: Optional[date] = None
    ongoing: bool = False


class ProjectLinks(_Document):
    github: Optional[str] = None
    live: Optional[str] = None


class Project(_Document):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    skills: List[str] = Field(default_factory=list)
    links: ProjectLinks = Field(default_factory=ProjectLinks)


class WorkEntry(_Document):
    role: Optional[str] = None
    company: Optional[str] = None
    duration: Optional[str] = None


class ProfileLinks(_Document):
    github: str
    linkedin: str
    portfolio: str


class Profile(_Document):
    """The single stored portfolio document."""

    id: str = PROFILE_KEY
    name: str
    email: str
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    work: List[WorkEntry] = Field(default_factory=list)
    links: Optional[ProfileLinks] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ProfileUpdate(_Document):
    """Whitelisted write payload; only the fields a caller supplied are applied."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    education: Optional[List[EducationEntry]] = None
    skills: Optional[List[str]] = None
    projects: Optional[List[Project]] = None
    work: Optional[List[WorkEntry]] = None
    links: Optional[ProfileLinks] = None

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _null_list_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def changes(self) -> Dict[str, Any]:
        """Supplied fields as validated Python values."""
        return {name: getattr(self, name) for name in PROFILE_FIELDS if name in self.model_fields_set}

    def column_values(self) -> Dict[str, Any]:
        """Supplied fields in their JSON storage form."""
        return self.model_dump(mode="json", include=set(self.changes()))


def whitelist_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {field: payload[field] for field in PROFILE_FIELDS if field in payload}


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid value")
    return f"Invalid profile field '{location}': {message}" if location else message


def build_profile_update(payload: Any) -> ProfileUpdate:
    """Drop non-whitelisted keys, require name/email, then validate nested values."""
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ProfileValidationError("Profile payload must be a JSON object")

    filtered = whitelist_fields(payload)
    if not _has_text(filtered.get("name")) or not _has_text(filtered.get("email")):
        raise ProfileValidationError("Name and email are required")

    try:
        return ProfileUpdate.model_validate(filtered)
    except ValidationError as exc:
        raise ProfileValidationError(_describe_validation_error(exc)) from exc


class _DatabaseProfileStore:
    """SQLAlchemy-backed persistence keyed by PROFILE_KEY."""

    def get(self) -> Optional[Profile]:
        with session_scope(commit=False) as session:
            return _repo().get(session)

    def upsert(self, update: ProfileUpdate) -> Profile:
        with session_scope() as session:
            return _repo().upsert(session, update)


class _FileProfileStore:
    """JSON file persistence for single-process deployments without a database."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.RLock()

    def _load_unlocked(self) -> Optional[Profile]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        return Profile.model_validate(raw)

    def _write_unlocked(self, profile: Profile) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        with staging.open("w", encoding="utf-8") as handle:
            json.dump(profile.model_dump(mode="json"), handle, indent=2)
        os.replace(staging, self.path)

    def get(self) -> Optional[Profile]:
        with self._lock:
            return self._load_unlocked()

    def upsert(self, update: ProfileUpdate) -> Profile:
        with self._lock:
            now = _now()
            existing = self._load_unlocked()
            if existing is None:
                existing = Profile(name=update.name, email=update.email, created_at=now)
            stored = existing.model_copy(update={**update.changes(), "updated_at": now})
            self._write_unlocked(stored)
            return stored.model_copy(deep=True)


class ProfileStore:
    """Facade that delegates to the database or file backend based on configuration."""

    def __init__(self, mode: Optional[str] = None, path: Optional[Path] = None) -> None:
        self._mode = mode
        self._path = path
        self._db_store = _DatabaseProfileStore()
        self._file_store: Optional[_FileProfileStore] = None

    @property
    def mode(self) -> str:
        return self._mode or get_settings().persistence_mode

    def _backend(self) -> _DatabaseProfileStore | _FileProfileStore:
        if self.mode != "file":
            return self._db_store
        path = self._path or Path(get_settings().profile_file)
        if self._file_store is None or self._file_store.path != path:
            self._file_store = _FileProfileStore(path)
        return self._file_store

    def _call(self, method: str, *args: Any) -> Any:
        try:
            return getattr(self._backend(), method)(*args)
        except ProfileStoreError:
            raise
        except (SQLAlchemyError, OSError, ValueError, RuntimeError) as exc:
            raise ProfileStoreError(f"Profile {method} failed against the {self.mode} store: {exc}") from exc

    def get(self) -> Optional[Profile]:
        return self._call("get")

    def upsert(self, update: ProfileUpdate) -> Profile:
        stored = self._call("upsert", update)
        emit_event("profile_upserted", backend=self.mode, fields=sorted(update.changes()))
        return stored


profile_store = ProfileStore()

__all__ = [
    "EducationEntry",
    "LIST_FIELDS",
    "PROFILE_FIELDS",
    "PROFILE_KEY",
    "Profile",
    "ProfileLinks",
    "ProfileStore",
    "ProfileUpdate",
    "Project",
    "ProjectLinks",
    "WorkEntry",
    "build_profile_update",
    "profile_store",
    "whitelist_fields",
]
