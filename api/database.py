"""SQLite storage for uploaded files and reconciled business records."""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from core.config import get_config
from models.ingestion import FILE_TYPE_CONFIGS

logger = logging.getLogger(__name__)


def get_db_path() -> Path:
    return Path(get_config().storage.database_path)


def init_db():
    """Initialize the database with required tables."""
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_connection() as conn:
        # One row per ingestion attempt
        conn.execute("""
            CREATE TABLE IF NOT EXISTS uploaded_files (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                uploaded_file_name TEXT NOT NULL,
                db_file_name TEXT,
                rows_count INTEGER NOT NULL DEFAULT 0,
                uploaded_by TEXT NOT NULL,
                org_id TEXT,
                showroom_id TEXT NOT NULL,
                file_type TEXT NOT NULL,
                file_size INTEGER DEFAULT 0,
                file_hash TEXT,
                processing_status TEXT NOT NULL DEFAULT 'pending',
                upload_case TEXT,
                rows_inserted INTEGER DEFAULT 0,
                rows_updated INTEGER DEFAULT 0,
                error_message TEXT,
                uploaded_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_uploaded_files_lookup
            ON uploaded_files(showroom_id, file_type, file_hash, processing_status)
        """)

        # One table per file type; (showroom_id, business_key) is unique
        for config in FILE_TYPE_CONFIGS.values():
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {config.table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    showroom_id TEXT NOT NULL,
                    business_key TEXT NOT NULL,
                    uploaded_file_id INTEGER,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE(showroom_id, business_key)
                )
            """)
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{config.table}_file
                ON {config.table}(uploaded_file_id)
            """)

    logger.info(f"Database initialized at {db_path}")


@contextmanager
def get_connection():
    """Get a database connection.

    Connections run in autocommit mode; multi-statement work goes through
    transaction().
    """
    conn = sqlite3.connect(
        str(get_db_path()),
        timeout=get_config().storage.db_timeout_seconds,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection):
    """Run a block under BEGIN IMMEDIATE; commit on success, roll back on error.

    IMMEDIATE takes the write lock up front, so reads made inside the block
    cannot be invalidated by another writer before commit.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")
