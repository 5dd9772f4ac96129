import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from .config import get_settings
from .db.monitoring import get_pool_snapshot
from .db.session import create_schema, get_engine
from .errors import ProfileStoreError
from .logging_config import configure_logging
from .portfolio_profile import profile_store
from .profile_routes import router as profile_router
from .rate_limit import build_limiter, install_rate_limiting


configure_logging()
logger = logging.getLogger(__name__)

settings_snapshot = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    if settings.persistence_mode == "database" and settings.database_auto_create:
        try:
            create_schema()
        except Exception as exc:  # noqa: BLE001
            logger.error("Could not create profile tables at startup: %s", exc)
    logger.info("Portfolio API ready (persistence=%s)", settings.persistence_mode)
    yield


app = FastAPI(title="Portfolio Profile API", version="0.1.0", lifespan=lifespan)
install_rate_limiting(app, build_limiter(settings_snapshot))
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings_snapshot.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(profile_router)

logger.info("Rate limit: %s (enabled=%s)", settings_snapshot.rate_limit, settings_snapshot.rate_limit_enabled)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Request body must be a JSON object"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/health/database")
def database_health() -> Dict[str, Any]:
    mode = profile_store.mode
    if mode != "database":
        try:
            profile_store.get()
        except ProfileStoreError as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return {"status": "ok", "persistence_mode": mode, "pool": None}
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "persistence_mode": mode, "pool": get_pool_snapshot(engine)}


def main() -> None:
    import uvicorn

    settings = get_settings()
    logger.info("Starting portfolio API on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
