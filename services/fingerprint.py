"""File fingerprinting for exact re-upload detection."""

import hashlib
import json
import sqlite3
from typing import Any, Dict, Mapping, Optional, Sequence

from api.models import UploadedFile, UploadedFileRepository
from models.ingestion import parse_file_type


def fingerprint_payload(rows: Sequence[Mapping[str, Any]], file_type: Any) -> Dict[str, Any]:
    return {
        "fileType": parse_file_type(file_type).value,
        "rowCount": len(rows),
        "firstRow": dict(rows[0]) if rows else None,
        "lastRow": dict(rows[-1]) if rows else None,
    }


def fingerprint(rows: Sequence[Mapping[str, Any]], file_type: Any) -> str:
    """
    SHA-256 of file type, row count, first row and last row.

    Samples the boundary rows only; interior rows do not affect the hash.
    Key order inside rows does not matter.
    """
    canonical = json.dumps(
        fingerprint_payload(rows, file_type),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def find_completed_duplicate(file_hash: str, showroom_id: str, file_type: Any,
                             conn: sqlite3.Connection = None) -> Optional[UploadedFile]:
    """Prior completed upload of the same fingerprint for this showroom and type."""
    return UploadedFileRepository.find_completed_by_hash(
        file_hash, showroom_id, parse_file_type(file_type).value, conn
    )
