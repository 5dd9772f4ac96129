"""Per-client fixed-window rate limiting applied to every route."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from .config import Settings

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def build_limiter(settings: Settings) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
        strategy="fixed-window",
    )


def _rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": RATE_LIMIT_MESSAGE},
    )


def install_rate_limiting(app: FastAPI, limiter: Limiter) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded)  # type: ignore[arg-type]
    app.add_middleware(SlowAPIMiddleware)


__all__ = ["RATE_LIMIT_MESSAGE", "build_limiter", "install_rate_limiting"]
