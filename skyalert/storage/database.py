"""SQLite store for persisted settings: WAL connection and versioned schema."""

import importlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "skyalert.storage.migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"

BUSY_TIMEOUT_MS = 5000


def connect(db_path: str | Path) -> sqlite3.Connection:
    """Open a connection with WAL journaling and a busy timeout."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    return conn


def open_store(db_path: str | Path) -> sqlite3.Connection:
    """Connect and bring the schema up to date."""
    conn = connect(db_path)
    run_migrations(conn)
    return conn


def applied_versions(conn: sqlite3.Connection) -> set[str]:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_versions ("
        "  version TEXT PRIMARY KEY,"
        "  applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP"
        ")"
    )
    return {row["version"] for row in conn.execute("SELECT version FROM schema_versions")}


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply pending migrations in version order and return their names.

    Each migration and its version row commit together.
    """
    done = applied_versions(conn)
    pending = [name for name in _discover_migrations() if name not in done]
    for name in pending:
        mod = importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}")
        with conn:
            mod.up(conn)
            conn.execute("INSERT INTO schema_versions (version) VALUES (?)", (name,))
        logger.info("Applied migration %s", name)
    return pending


def _discover_migrations() -> list[str]:
    # Modules named v<digits>_<label>.py sort into apply order.
    return sorted(p.stem for p in MIGRATIONS_DIR.glob("v[0-9]*_*.py"))
