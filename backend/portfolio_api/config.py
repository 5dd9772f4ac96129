import os
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field("sqlite:///./portfolio.db", alias="PORTFOLIO_DATABASE_URL")
    database_pool_size: int = Field(10, alias="PORTFOLIO_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="PORTFOLIO_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="PORTFOLIO_DATABASE_ECHO")
    database_auto_create: bool = Field(True, alias="PORTFOLIO_DATABASE_AUTO_CREATE")
    persistence_mode: Literal["database", "file"] = Field("database", alias="PORTFOLIO_PERSISTENCE_MODE")
    profile_file: str = Field("data/profile.json", alias="PORTFOLIO_PROFILE_FILE")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(5000, alias="PORT")
    cors_origins: str = Field("*", alias="PORTFOLIO_CORS_ORIGINS")
    rate_limit: str = Field("100 per 15 minutes", alias="PORTFOLIO_RATE_LIMIT")
    rate_limit_enabled: bool = Field(True, alias="PORTFOLIO_RATE_LIMIT_ENABLED")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def cors_origin_list(self) -> List[str]:
        origins = [origin.strip() for origin in self.cors_origins.split(",")]
        return [origin for origin in origins if origin] or ["*"]


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
