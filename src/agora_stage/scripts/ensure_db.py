"""Utility script to prepare the configured database."""
from __future__ import annotations

import argparse
import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql
from sqlalchemy.exc import SQLAlchemyError

from agora_stage.core.settings import settings

logger = logging.getLogger("agora_stage.ensure_db")


def normalize_to_psycopg(uri: str) -> str:
    """Return a Postgres URI suitable for psycopg.connect().

    - Strips quotes and whitespace.
    - Converts SQLAlchemy schemes (postgresql+*) to plain "postgresql".
    """
    uri = (uri or "").strip()
    if (uri.startswith("'") and uri.endswith("'")) or (uri.startswith('"') and uri.endswith('"')):
        uri = uri[1:-1]
    if not uri:
        raise ValueError("DATABASE_URL is empty")

    parts = urlsplit(uri)
    scheme = parts.scheme
    if scheme.startswith("postgresql+"):
        scheme = "postgresql"
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def is_postgres(uri: str) -> bool:
    return urlsplit((uri or "").strip()).scheme.startswith("postgresql")


def _split_db_url(db_url: str) -> tuple[str, str]:
    """Return `(admin_url, target_db)` using the maintenance database."""
    parts = urlsplit(normalize_to_psycopg(db_url))
    if not parts.scheme.startswith("postgresql"):
        raise ValueError(f"Not a PostgreSQL URL: {db_url!r}")

    target_db = parts.path.lstrip("/") or "postgres"
    if parts.netloc:
        admin_url = urlunsplit(
            ("postgresql", parts.netloc, "/postgres", parts.query, parts.fragment)
        )
    else:
        admin_url = "postgresql:///postgres"
    return admin_url, target_db


def ensure_database_exists(db_url: str) -> bool:
    """Create the configured PostgreSQL database if it is missing.

    Returns:
        True when the database was created.
    """
    admin_url, target_db = _split_db_url(db_url)
    with psycopg.connect(admin_url, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", target_db)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
    logger.info("Created database %s", target_db)
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ensure the configured database and schema exist")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables from the ORM metadata (use alembic in production).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper(), format="[ensure_db] %(message)s")

    raw_url = args.url or settings.effective_database_url
    try:
        if is_postgres(raw_url):
            ensure_database_exists(raw_url)
        if args.create_tables:
            from sqlalchemy import create_engine

            from agora_stage.db.session import Base

            Base.metadata.create_all(bind=create_engine(raw_url))
            logger.info("Tables created")
    except (psycopg.Error, SQLAlchemyError, ValueError) as exc:
        logger.error("ERROR: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
