"""
Database Models for spreadsheet ingestion

- UploadedFile: one row per ingestion attempt, with its lifecycle status
- BusinessRecord: one reconciled spreadsheet row, unique per
  (showroom_id, business_key) within its file type's table

Repository methods accept an optional open connection so they can run
inside a caller's transaction; without one they open their own.
"""

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from api.database import get_connection
from models.ingestion import (
    FILE_TYPE_CONFIGS,
    FileMetadata,
    ProcessingStatus,
    UploadCase,
    get_file_type_config,
)

# SQLite's default bound-parameter limit is 999 on older builds
KEY_CHUNK_SIZE = 500


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _connection(conn: Optional[sqlite3.Connection] = None):
    """Reuse the caller's connection or open a private one."""
    if conn is not None:
        yield conn
    else:
        with get_connection() as own:
            yield own


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class UploadedFile:
    """One ingested spreadsheet."""
    id: int
    uploaded_file_name: str
    uploaded_by: str
    showroom_id: str
    file_type: str
    uploaded_at: str
    updated_at: str
    db_file_name: Optional[str] = None
    rows_count: int = 0
    org_id: Optional[str] = None
    file_size: int = 0
    file_hash: Optional[str] = None
    processing_status: str = ProcessingStatus.PENDING.value
    upload_case: Optional[str] = None
    rows_inserted: int = 0
    rows_updated: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uploaded_file_name": self.uploaded_file_name,
            "db_file_name": self.db_file_name,
            "rows_count": self.rows_count,
            "uploaded_by": self.uploaded_by,
            "org_id": self.org_id,
            "showroom_id": self.showroom_id,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "file_hash": self.file_hash,
            "processing_status": self.processing_status,
            "upload_case": self.upload_case,
            "rows_inserted": self.rows_inserted,
            "rows_updated": self.rows_updated,
            "error_message": self.error_message,
            "uploaded_at": self.uploaded_at,
            "updated_at": self.updated_at,
        }


@dataclass
class BusinessRecord:
    """One reconciled row of a file type's table."""
    id: int
    showroom_id: str
    business_key: str
    uploaded_file_id: Optional[int]
    created_at: str
    updated_at: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "BusinessRecord":
        values = dict(row)
        values["data"] = json.loads(values["data"]) if values.get("data") else {}
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.data,
            "id": self.id,
            "showroom_id": self.showroom_id,
            "business_key": self.business_key,
            "uploaded_file_id": self.uploaded_file_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def _dump(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, default=str)


# =============================================================================
# REPOSITORIES
# =============================================================================

class UploadedFileRepository:
    """Repository for UploadedFile operations."""

    @staticmethod
    def create(meta: FileMetadata, rows_count: int, file_hash: str,
               conn: sqlite3.Connection = None) -> int:
        """Create a file record in 'processing' state. Returns the file ID."""
        now = utc_now()
        with _connection(conn) as c:
            cursor = c.execute(
                """INSERT INTO uploaded_files
                   (uploaded_file_name, db_file_name, rows_count, uploaded_by, org_id,
                    showroom_id, file_type, file_size, file_hash, processing_status,
                    uploaded_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (meta.uploaded_file_name, meta.db_file_name, rows_count, meta.uploaded_by,
                 meta.org_id, meta.showroom_id, meta.file_type.value, meta.file_size,
                 file_hash, ProcessingStatus.PROCESSING.value, now, now)
            )
            return cursor.lastrowid

    @staticmethod
    def get_by_id(id: int, conn: sqlite3.Connection = None) -> Optional[UploadedFile]:
        """Get uploaded file by ID."""
        with _connection(conn) as c:
            row = c.execute(
                "SELECT * FROM uploaded_files WHERE id = ?", (id,)
            ).fetchone()
            if row:
                return UploadedFile(**dict(row))
            return None

    @staticmethod
    def finalize(id: int, upload_case: UploadCase, rows_inserted: int, rows_updated: int,
                 conn: sqlite3.Connection = None) -> bool:
        """Mark a processing file completed with its case and counts."""
        with _connection(conn) as c:
            cursor = c.execute(
                """UPDATE uploaded_files
                   SET processing_status = ?, upload_case = ?, rows_inserted = ?,
                       rows_updated = ?, error_message = NULL, updated_at = ?
                   WHERE id = ? AND processing_status = ?""",
                (ProcessingStatus.COMPLETED.value, upload_case.value, rows_inserted,
                 rows_updated, utc_now(), id, ProcessingStatus.PROCESSING.value)
            )
            return cursor.rowcount > 0

    @staticmethod
    def mark_failed(id: int, error_message: str, conn: sqlite3.Connection = None) -> bool:
        """Mark a processing file failed with the captured error."""
        with _connection(conn) as c:
            cursor = c.execute(
                """UPDATE uploaded_files
                   SET processing_status = ?, error_message = ?, updated_at = ?
                   WHERE id = ? AND processing_status = ?""",
                (ProcessingStatus.FAILED.value, error_message, utc_now(), id,
                 ProcessingStatus.PROCESSING.value)
            )
            return cursor.rowcount > 0

    @staticmethod
    def find_completed_by_hash(file_hash: str, showroom_id: str, file_type: str,
                               conn: sqlite3.Connection = None) -> Optional[UploadedFile]:
        """Most recent completed upload with this fingerprint, if any."""
        with _connection(conn) as c:
            row = c.execute(
                """SELECT * FROM uploaded_files
                   WHERE file_hash = ? AND showroom_id = ? AND file_type = ?
                     AND processing_status = ?
                   ORDER BY uploaded_at DESC, id DESC LIMIT 1""",
                (file_hash, showroom_id, file_type, ProcessingStatus.COMPLETED.value)
            ).fetchone()
            if row:
                return UploadedFile(**dict(row))
            return None

    @staticmethod
    def list_by_showroom(showroom_id: str, file_type: str = None, limit: int = 50,
                         conn: sqlite3.Connection = None) -> List[UploadedFile]:
        """Upload history, newest first."""
        query = "SELECT * FROM uploaded_files WHERE showroom_id = ?"
        params: List[Any] = [showroom_id]
        if file_type:
            query += " AND file_type = ?"
            params.append(file_type)
        query += " ORDER BY uploaded_at DESC, id DESC LIMIT ?"
        params.append(limit)

        with _connection(conn) as c:
            rows = c.execute(query, params).fetchall()
            return [UploadedFile(**dict(row)) for row in rows]

    @staticmethod
    def stats_by_showroom(showroom_id: str, file_type: str = None,
                          conn: sqlite3.Connection = None) -> List[Dict[str, Any]]:
        """Upload counts grouped by file type."""
        query = """SELECT file_type,
                          COUNT(*) AS total_files,
                          COALESCE(SUM(rows_count), 0) AS total_rows,
                          SUM(CASE WHEN processing_status = ? THEN 1 ELSE 0 END) AS successful_uploads,
                          SUM(CASE WHEN processing_status = ? THEN 1 ELSE 0 END) AS failed_uploads,
                          MAX(uploaded_at) AS last_upload
                   FROM uploaded_files
                   WHERE showroom_id = ?"""
        params: List[Any] = [ProcessingStatus.COMPLETED.value, ProcessingStatus.FAILED.value,
                             showroom_id]
        if file_type:
            query += " AND file_type = ?"
            params.append(file_type)
        query += " GROUP BY file_type ORDER BY file_type"

        with _connection(conn) as c:
            return [dict(row) for row in c.execute(query, params).fetchall()]

    @staticmethod
    def delete(id: int, conn: sqlite3.Connection = None) -> bool:
        with _connection(conn) as c:
            cursor = c.execute("DELETE FROM uploaded_files WHERE id = ?", (id,))
            return cursor.rowcount > 0


class BusinessRecordRepository:
    """Repository for the per-file-type business record tables."""

    @staticmethod
    def find_by_keys(file_type: Any, showroom_id: str, keys: Iterable[str],
                     conn: sqlite3.Connection = None) -> Dict[str, BusinessRecord]:
        """Stored records for the given keys, indexed by business key."""
        table = get_file_type_config(file_type).table
        unique_keys = list(dict.fromkeys(keys))
        found: Dict[str, BusinessRecord] = {}

        with _connection(conn) as c:
            for start in range(0, len(unique_keys), KEY_CHUNK_SIZE):
                chunk = unique_keys[start:start + KEY_CHUNK_SIZE]
                placeholders = ", ".join("?" for _ in chunk)
                rows = c.execute(
                    f"""SELECT * FROM {table}
                        WHERE showroom_id = ? AND business_key IN ({placeholders})""",
                    [showroom_id, *chunk]
                ).fetchall()
                for row in rows:
                    record = BusinessRecord.from_row(row)
                    found[record.business_key] = record
        return found

    @staticmethod
    def get_by_key(file_type: Any, showroom_id: str, business_key: str,
                   conn: sqlite3.Connection = None) -> Optional[BusinessRecord]:
        table = get_file_type_config(file_type).table
        with _connection(conn) as c:
            row = c.execute(
                f"SELECT * FROM {table} WHERE showroom_id = ? AND business_key = ?",
                (showroom_id, business_key)
            ).fetchone()
            if row:
                return BusinessRecord.from_row(row)
            return None

    @staticmethod
    def upsert(file_type: Any, showroom_id: str, business_key: str, data: Dict[str, Any],
               uploaded_file_id: int, conn: sqlite3.Connection = None) -> bool:
        """
        Insert a record, or merge into the existing one on key conflict.

        On insert both timestamps are set. On conflict the non-key data
        fields are merged over the stored ones, the file is rebound and only
        updated_at moves. Returns True when a new row was inserted.
        """
        config = get_file_type_config(file_type)
        table = config.table
        now = utc_now()
        with _connection(conn) as c:
            cursor = c.execute(
                f"""INSERT INTO {table}
                    (showroom_id, business_key, uploaded_file_id, data, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(showroom_id, business_key) DO NOTHING""",
                (showroom_id, business_key, uploaded_file_id, _dump(data), now, now)
            )
            if cursor.rowcount > 0:
                return True

            existing = BusinessRecordRepository.get_by_key(file_type, showroom_id, business_key, c)
            changes = config.business_key.strip_from(data)
            merged = {**existing.data, **changes} if existing else data
            c.execute(
                f"""UPDATE {table}
                    SET data = ?, uploaded_file_id = ?, updated_at = ?
                    WHERE showroom_id = ? AND business_key = ?""",
                (_dump(merged), uploaded_file_id, now, showroom_id, business_key)
            )
            return False

    @staticmethod
    def update(file_type: Any, record_id: int, data: Dict[str, Any], uploaded_file_id: int,
               conn: sqlite3.Connection = None) -> bool:
        """Replace a record's data in place and rebind it to the given file."""
        table = get_file_type_config(file_type).table
        with _connection(conn) as c:
            cursor = c.execute(
                f"""UPDATE {table}
                    SET data = ?, uploaded_file_id = ?, updated_at = ?
                    WHERE id = ?""",
                (_dump(data), uploaded_file_id, utc_now(), record_id)
            )
            return cursor.rowcount > 0

    @staticmethod
    def list_by_showroom(file_type: Any, showroom_id: str,
                         conn: sqlite3.Connection = None) -> List[BusinessRecord]:
        table = get_file_type_config(file_type).table
        with _connection(conn) as c:
            rows = c.execute(
                f"SELECT * FROM {table} WHERE showroom_id = ? ORDER BY id", (showroom_id,)
            ).fetchall()
            return [BusinessRecord.from_row(row) for row in rows]

    @staticmethod
    def count_by_showroom(file_type: Any, showroom_id: str,
                          conn: sqlite3.Connection = None) -> int:
        table = get_file_type_config(file_type).table
        with _connection(conn) as c:
            row = c.execute(
                f"SELECT COUNT(*) FROM {table} WHERE showroom_id = ?", (showroom_id,)
            ).fetchone()
            return row[0]

    @staticmethod
    def delete_by_file(uploaded_file_id: int, conn: sqlite3.Connection = None) -> int:
        """Delete every record, of any file type, last written by this file."""
        deleted = 0
        with _connection(conn) as c:
            for config in FILE_TYPE_CONFIGS.values():
                cursor = c.execute(
                    f"DELETE FROM {config.table} WHERE uploaded_file_id = ?",
                    (uploaded_file_id,)
                )
                deleted += cursor.rowcount
        return deleted
