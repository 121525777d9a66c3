"""
Plain-SQL migrations.

    python -m authbot.infrastructure.db.migrate up
    python -m authbot.infrastructure.db.migrate status
    python -m authbot.infrastructure.db.migrate new add_some_column
"""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

import psycopg

from authbot.logging import setup_logging
from authbot.settings import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(os.environ.get("MIGRATIONS_DIR", "migrations"))
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def list_migrations(directory: Path = MIGRATIONS_DIR) -> list[Path]:
    if not directory.exists():
        raise FileNotFoundError(f"migrations dir not found: {directory}")
    return sorted(directory.glob("*.sql"))


def applied_versions(conn: psycopg.Connection) -> dict[str, datetime]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version, applied_at FROM schema_migrations ORDER BY version;")
        rows = cur.fetchall()
    conn.commit()
    return {version: applied_at for version, applied_at in rows}


def pending(conn: psycopg.Connection, directory: Path = MIGRATIONS_DIR) -> list[Path]:
    done = applied_versions(conn)
    return [p for p in list_migrations(directory) if p.stem not in done]


def apply_one(conn: psycopg.Connection, path: Path) -> None:
    version = path.stem
    with conn.transaction():
        with conn.cursor() as cur:
            cur.execute(path.read_text(encoding="utf-8"))
            cur.execute(
                "INSERT INTO schema_migrations (version) VALUES (%s);", (version,)
            )
    logger.info("migration applied", extra={"version": version})


def cmd_up(dsn: str) -> int:
    with psycopg.connect(dsn) as conn:
        to_run = pending(conn)
        if not to_run:
            logger.info("no pending migrations")
            return 0
        for path in to_run:
            try:
                apply_one(conn, path)
            except psycopg.Error as e:
                logger.error(
                    "migration failed", extra={"version": path.stem, "error": str(e)}
                )
                return 1
    return 0


def cmd_status(dsn: str) -> int:
    with psycopg.connect(dsn) as conn:
        done = applied_versions(conn)
        waiting = pending(conn)
    for version, applied_at in done.items():
        print(f"applied  {version} @ {applied_at.isoformat()}")
    for path in waiting:
        print(f"pending  {path.stem}")
    return 0


def cmd_new(name: str, directory: Path = MIGRATIONS_DIR) -> Path:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    path = directory / f"{ts}_{name}.sql"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- write your SQL here\n", encoding="utf-8")
    return path


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m authbot.infrastructure.db.migrate")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("up", help="apply pending migrations")
    sub.add_parser("status", help="list applied and pending migrations")
    new = sub.add_parser("new", help="create an empty migration file")
    new.add_argument("name")
    args = parser.parse_args(argv)

    if args.command == "new":
        print(cmd_new(args.name))
        return 0

    settings = get_settings()
    setup_logging(settings.log_level)
    if args.command == "up":
        return cmd_up(settings.database_url)
    return cmd_status(settings.database_url)


if __name__ == "__main__":
    raise SystemExit(main())
