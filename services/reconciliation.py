"""Reconciliation engine: applies a classified batch to the record store.

Runs inside the caller's transaction. Rows are written in file-row order;
the first failing row raises ReconciliationError and the caller rolls the
whole batch back.
"""

import logging
import sqlite3
from typing import Any, Dict, Mapping, Sequence

from api.models import BusinessRecordRepository, UploadedFile
from core.exceptions import ReconciliationError
from models.ingestion import (
    Classification,
    FileTypeConfig,
    ReconcileResult,
    UploadCase,
    get_file_type_config,
)

logger = logging.getLogger(__name__)


def _insert_or_merge(config: FileTypeConfig, showroom_id: str, key: str,
                     row: Dict[str, Any], file_id: int, conn: sqlite3.Connection) -> bool:
    """Upsert by (business key, showroom). True if inserted."""
    return BusinessRecordRepository.upsert(config.file_type, showroom_id, key, row, file_id, conn)


def _update_in_place(config: FileTypeConfig, showroom_id: str, key: str,
                     row: Dict[str, Any], file_id: int, conn: sqlite3.Connection) -> None:
    """Overwrite a stored record's non-key fields and rebind it to this file.

    Reads the record through the transaction's connection so an earlier row
    of the same batch with the same key is seen.
    """
    record = BusinessRecordRepository.get_by_key(config.file_type, showroom_id, key, conn)
    if record is None:
        # Deleted since the prior upload; recreate it
        BusinessRecordRepository.upsert(config.file_type, showroom_id, key, row, file_id, conn)
        return
    data = {**record.data, **config.business_key.strip_from(row)}
    BusinessRecordRepository.update(config.file_type, record.id, data, file_id, conn)


def reconcile(
    rows: Sequence[Mapping[str, Any]],
    uploaded_file: UploadedFile,
    classification: Classification,
    conn: sqlite3.Connection,
) -> ReconcileResult:
    """
    Execute the write plan for a classified batch.

    - CASE_1_NEW_FILE: upsert every row
    - CASE_2_DUPLICATE_FILE: update every row in place (counted as updates)
    - CASE_3_MIXED_FILE: update rows whose key was stored, upsert the rest

    Raises:
        ReconciliationError: any row write failed
    """
    config = get_file_type_config(classification.file_type)
    showroom_id = classification.showroom_id
    file_id = uploaded_file.id
    existing = set(classification.existing_keys)
    result = ReconcileResult()

    for index, raw in enumerate(rows, start=1):
        row = dict(raw)
        key = config.business_key.value_for(row)
        try:
            if classification.upload_case == UploadCase.DUPLICATE_FILE or (
                classification.upload_case == UploadCase.MIXED_FILE and key in existing
            ):
                _update_in_place(config, showroom_id, key, row, file_id, conn)
                result.updated_count += 1
            elif _insert_or_merge(config, showroom_id, key, row, file_id, conn):
                result.inserted_count += 1
            else:
                result.updated_count += 1
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"Row {index} ({config.business_key.fields}={key!r}) failed: {e}")
            raise ReconciliationError(
                f"Failed to write row {index} ({key}): {e}", file_id=file_id
            ) from e

    logger.info(
        f"Reconciled {classification.upload_case.value}: "
        f"inserted={result.inserted_count} updated={result.updated_count}"
    )
    return result
