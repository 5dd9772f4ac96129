"""Load a profile JSON document into the configured store.

The document goes through the same whitelisting and validation as ``PUT /profile``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from portfolio_api.config import get_settings
from portfolio_api.db.session import create_schema
from portfolio_api.errors import ProfileStoreError, ProfileValidationError
from portfolio_api.portfolio_profile import Profile, build_profile_update, profile_store

logger = logging.getLogger("portfolio.seed")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the portfolio profile from a JSON file.")
    parser.add_argument("path", type=Path, help="JSON file holding the profile document.")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before writing (database mode only).",
    )
    return parser.parse_args(argv)


def _load_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def seed_profile(path: Path, *, create_tables: bool = False) -> Profile:
    payload = _load_json(path)
    if isinstance(payload, dict) and isinstance(payload.get("profile"), dict):
        # Accept a saved GET /profile response as well as a bare document.
        payload = payload["profile"]
    update = build_profile_update(payload)
    if create_tables and get_settings().persistence_mode == "database":
        create_schema()
    profile = profile_store.upsert(update)
    logger.info("Seeded profile for %s from %s", profile.name, path)
    return profile


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = parse_args(argv)
    try:
        seed_profile(args.path, create_tables=args.create_schema)
    except ProfileValidationError as exc:
        logger.error("Invalid profile document in %s: %s", args.path, exc)
        return 1
    except (OSError, ValueError) as exc:
        logger.error("Could not read %s: %s", args.path, exc)
        return 1
    except ProfileStoreError as exc:
        logger.error("Profile store rejected the seed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
