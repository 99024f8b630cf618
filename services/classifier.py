"""Upload case classification.

Decides which reconciliation strategy applies to a mapped, validated batch:

- CASE_2_DUPLICATE_FILE: a completed upload with the same fingerprint exists
  for this showroom and file type. Checked first; every row is an update.
- CASE_1_NEW_FILE: none of the batch's business keys are stored yet.
- CASE_3_MIXED_FILE: novel fingerprint, some keys already stored. Rows split
  into an update set and an insert set.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Mapping, Sequence

from api.models import BusinessRecordRepository
from models.ingestion import Classification, UploadCase, get_file_type_config
from services.fingerprint import find_completed_duplicate

logger = logging.getLogger(__name__)


def classify_upload(
    rows: Sequence[Mapping[str, Any]],
    file_type: Any,
    showroom_id: str,
    file_hash: str,
    conn: sqlite3.Connection = None,
) -> Classification:
    """
    Classify a batch against the stored state of one showroom.

    Args:
        rows: Canonical rows (already validated)
        file_type: FileType or its string value
        showroom_id: Tenant scope for every lookup
        file_hash: Fingerprint of the batch
        conn: Connection to read through (pass the reconciliation
            transaction's connection so the snapshot stays valid)

    Raises:
        ClassificationError: unknown file type
    """
    config = get_file_type_config(file_type)
    business_key = config.business_key

    excel_keys: List[str] = list(dict.fromkeys(
        key for key in (business_key.value_for(row) for row in rows) if key
    ))
    matched = BusinessRecordRepository.find_by_keys(config.file_type, showroom_id, excel_keys, conn)
    existing_keys = [key for key in excel_keys if key in matched]
    new_keys = [key for key in excel_keys if key not in matched]

    classification = Classification(
        upload_case=UploadCase.NEW_FILE,
        file_type=config.file_type,
        showroom_id=showroom_id,
        file_hash=file_hash,
        total_rows=len(rows),
        excel_keys=excel_keys,
        existing_keys=existing_keys,
        new_keys=new_keys,
        matched_records=matched,
    )

    duplicate = find_completed_duplicate(file_hash, showroom_id, config.file_type, conn)
    if duplicate is not None:
        classification.upload_case = UploadCase.DUPLICATE_FILE
        classification.duplicate_file_id = duplicate.id
        classification.existing_rows = [dict(row) for row in rows]
    elif not existing_keys:
        classification.upload_case = UploadCase.NEW_FILE
        classification.new_rows = [dict(row) for row in rows]
    else:
        classification.upload_case = UploadCase.MIXED_FILE
        existing_rows: List[Dict[str, Any]] = []
        new_rows: List[Dict[str, Any]] = []
        for row in rows:
            if business_key.value_for(row) in matched:
                existing_rows.append(dict(row))
            else:
                new_rows.append(dict(row))
        classification.existing_rows = existing_rows
        classification.new_rows = new_rows

    logger.info(
        f"Classified {config.file_type.value} upload as {classification.upload_case.value}: "
        f"{len(rows)} rows, {len(existing_keys)} existing keys, {len(new_keys)} new keys"
    )
    return classification
