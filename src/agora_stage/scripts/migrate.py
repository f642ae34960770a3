# src/agora_stage/scripts/migrate.py
"""Bring the configured database up to the latest schema."""
from __future__ import annotations

import argparse
import logging
import os

from alembic import command
from alembic.config import Config

from agora_stage.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def build_config(database_url: str | None = None) -> Config:
    """Return an Alembic config pointed at the project's migrations folder."""
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade_head(database_url: str | None = None) -> None:
    """Apply every pending migration."""
    logger.info("Upgrading database schema to head")
    command.upgrade(build_config(database_url), "head")


def run_create_all() -> None:
    """Create tables straight from the ORM metadata, skipping Alembic."""
    from agora_stage.db.session import create_tables

    logger.info("Creating tables from metadata")
    create_tables()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="create tables from the models instead of running migrations",
    )
    parser.add_argument("--url", help="database URL overriding DATABASE_URL")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper())
    if args.create_all:
        run_create_all()
    else:
        run_upgrade_head(args.url)


if __name__ == "__main__":
    main()
