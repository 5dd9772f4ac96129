"""Error types shared by the profile store, query helpers and routes."""

from __future__ import annotations


class ProfileValidationError(ValueError):
    """Raised when a write payload or query term is missing required input."""


class ProfileStoreError(RuntimeError):
    """Raised when the persistence backend cannot be read or written."""


__all__ = ["ProfileStoreError", "ProfileValidationError"]
