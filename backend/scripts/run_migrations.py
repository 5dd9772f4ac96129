"""Bring the profile schema up to date once the database answers.

Deploys call this before starting the API so ``profiles`` and
``profile_audit_events`` exist ahead of the first request. ``--check`` only
reports whether the database is already at the target revision.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

LOGGER = logging.getLogger("portfolio.migrations")
BACKEND_ROOT = Path(__file__).resolve().parent.parent
URL_PLACEHOLDER = "%(PORTFOLIO_DATABASE_URL)s"
DEFAULT_TIMEOUT = int(os.getenv("PORTFOLIO_DB_MIGRATION_TIMEOUT", "60"))
DEFAULT_POLL_INTERVAL = float(os.getenv("PORTFOLIO_DB_MIGRATION_POLL_INTERVAL", "3"))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upgrade the portfolio profile schema.")
    parser.add_argument("--revision", default=os.getenv("PORTFOLIO_DB_MIGRATION_REVISION", "head"))
    parser.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT, help="Seconds to wait for the database.")
    parser.add_argument("--poll-interval", type=float, default=DEFAULT_POLL_INTERVAL)
    parser.add_argument("--config", default=str(BACKEND_ROOT / "alembic.ini"), help="alembic.ini to load.")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit 0 when the schema is at the target revision, 2 when an upgrade is pending.",
    )
    return parser.parse_args(argv)


def get_alembic_config(config_path: str) -> Config:
    config = Config(config_path)
    # Resolve versions relative to the backend so the script works from any cwd.
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    return config


def resolve_database_url(config: Config) -> str:
    """Explicit ``sqlalchemy.url`` wins; the placeholder defers to the environment."""
    configured = config.get_main_option("sqlalchemy.url")
    if configured and configured != URL_PLACEHOLDER:
        return configured

    from_env = os.getenv("PORTFOLIO_DATABASE_URL")
    if not from_env:
        raise RuntimeError("PORTFOLIO_DATABASE_URL must be set before running migrations.")
    config.set_main_option("sqlalchemy.url", from_env)
    return from_env


def _probe(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def wait_for_database(database_url: str, *, timeout: int, poll_interval: float) -> None:
    """Probe at least once, retrying connection failures until ``timeout`` elapses."""
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    deadline = time.monotonic() + timeout
    attempt = 0
    try:
        while True:
            attempt += 1
            try:
                _probe(engine)
            except OperationalError as exc:
                LOGGER.warning("Database not reachable (attempt %d): %s", attempt, exc)
                if time.monotonic() >= deadline:
                    raise RuntimeError(f"Database did not become ready within {timeout}s.") from exc
                time.sleep(poll_interval)
                continue
            except SQLAlchemyError as exc:
                raise RuntimeError(f"Database readiness probe failed: {exc}") from exc
            LOGGER.info("Database reachable after %d attempt(s).", attempt)
            return
    finally:
        engine.dispose()


def schema_is_current(config: Config, database_url: str, revision: str = "head") -> bool:
    """True when the database already sits at ``revision``."""
    target = ScriptDirectory.from_config(config).get_revision(revision)
    engine = create_engine(database_url, future=True)
    try:
        with engine.connect() as connection:
            current = MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()
    return target is not None and current == target.revision


def run_migrations(
    revision: str,
    *,
    timeout: int,
    poll_interval: float,
    config: Optional[Config] = None,
) -> None:
    config = config or get_alembic_config(str(BACKEND_ROOT / "alembic.ini"))
    database_url = resolve_database_url(config)
    wait_for_database(database_url, timeout=timeout, poll_interval=poll_interval)
    LOGGER.info("Upgrading profile schema to %s", revision)
    command.upgrade(config, revision)
    LOGGER.info("Profile schema is at %s.", revision)


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("PORTFOLIO_DB_MIGRATION_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = parse_args(argv)
    config = get_alembic_config(args.config)
    try:
        if args.check:
            database_url = resolve_database_url(config)
            wait_for_database(database_url, timeout=args.timeout, poll_interval=args.poll_interval)
            if schema_is_current(config, database_url, args.revision):
                LOGGER.info("Schema is up to date.")
                return 0
            LOGGER.warning("Schema upgrade to %s is pending.", args.revision)
            return 2
        run_migrations(args.revision, timeout=args.timeout, poll_interval=args.poll_interval, config=config)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Migration run failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
