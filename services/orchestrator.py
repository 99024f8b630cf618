"""
Upload orchestrator for service-center spreadsheets.

Flow:
1. Parse the sheet into raw rows
2. Map headers to canonical fields
3. Validate the whole batch (nothing is written on failure)
4. Fingerprint the batch
5. Record the upload as 'processing'
6. Under one BEGIN IMMEDIATE transaction:
   a. Classify the batch (new / duplicate / mixed)
   b. Reconcile rows into the record store
   c. Finalize the upload as 'completed'
7. On a write failure: roll back, mark the upload 'failed', re-raise
8. Re-run VIN matching after booking-list and repair-order uploads
"""

import sqlite3
from typing import Any, Dict, List, Mapping, Optional, Sequence

from api.database import get_connection, transaction
from api.models import BusinessRecordRepository, UploadedFile, UploadedFileRepository
from core.config import AppConfig, get_config
from core.exceptions import ReconciliationError, UploadNotFoundError, ValidationError
from core.logging_config import LogContext, generate_upload_id, get_logger
from extractors.column_mapper import ColumnMapper, get_column_mapper
from ingest.sheet_loader import load_rows
from models.ingestion import (
    FileMetadata,
    FileType,
    UploadResult,
    get_file_type_config,
)
from services.classifier import classify_upload
from services.fingerprint import fingerprint
from services.reconciliation import reconcile
from services.validation import validate_batch
from services.vin_matching import perform_vin_matching

logger = get_logger(__name__)

VIN_MATCHING_TRIGGERS = {FileType.BOOKING_LIST, FileType.REPAIR_ORDER_LIST}


class UploadOrchestrator:
    """Runs the ingestion pipeline for one upload at a time."""

    def __init__(self, config: Optional[AppConfig] = None, mapper: Optional[ColumnMapper] = None):
        self.config = config or get_config()
        self._mapper = mapper

    @property
    def mapper(self) -> ColumnMapper:
        """Lazy-load the column mapper."""
        if self._mapper is None:
            self._mapper = get_column_mapper()
        return self._mapper

    def upload_excel(self, meta: FileMetadata, content: bytes) -> UploadResult:
        """Parse an uploaded spreadsheet and ingest its rows."""
        raw_rows = load_rows(content, meta.uploaded_file_name)
        if not meta.file_size:
            meta.file_size = len(content)
        return self.process_rows(meta, raw_rows)

    def process_rows(self, meta: FileMetadata, raw_rows: Sequence[Mapping[str, Any]]) -> UploadResult:
        """
        Ingest already-parsed rows.

        Raises:
            ClassificationError: unknown file type
            ValidationError: batch rejected before any write
            ReconciliationError: a write failed; batch rolled back and the
                upload marked failed
        """
        config = get_file_type_config(meta.file_type)
        meta.file_type = config.file_type

        with LogContext(
            upload_id=generate_upload_id(),
            showroom_id=meta.showroom_id,
            file_type=config.file_type.value,
        ):
            logger.info(f"Processing {config.name} upload '{meta.uploaded_file_name}' "
                        f"({len(raw_rows)} rows) by {meta.uploaded_by}")

            if len(raw_rows) > self.config.ingest.max_upload_rows:
                raise ValidationError(
                    f"File has {len(raw_rows)} rows; the limit is "
                    f"{self.config.ingest.max_upload_rows}"
                )

            rows = self.mapper.map_rows(raw_rows, config.file_type)
            validate_batch(rows, config.file_type)
            file_hash = fingerprint(rows, config.file_type)

            with LogContext(file_hash=file_hash[:16]):
                result = self._reconcile_batch(meta, rows, file_hash)

            if config.file_type in VIN_MATCHING_TRIGGERS:
                matching = perform_vin_matching(meta.showroom_id)
                result.vin_matching = matching.summary_counts()

            logger.info(result.message)
            return result

    def _reconcile_batch(self, meta: FileMetadata, rows: List[Dict[str, Any]],
                         file_hash: str) -> UploadResult:
        with get_connection() as conn:
            file_id = UploadedFileRepository.create(meta, len(rows), file_hash, conn)
            uploaded = UploadedFileRepository.get_by_id(file_id, conn)

            try:
                with transaction(conn):
                    classification = classify_upload(
                        rows, meta.file_type, meta.showroom_id, file_hash, conn
                    )
                    outcome = reconcile(rows, uploaded, classification, conn)
                    UploadedFileRepository.finalize(
                        file_id, classification.upload_case,
                        outcome.inserted_count, outcome.updated_count, conn,
                    )
            except ReconciliationError as e:
                UploadedFileRepository.mark_failed(file_id, str(e), conn)
                logger.error(f"Upload {file_id} failed and was rolled back: {e}")
                raise
            except sqlite3.Error as e:
                UploadedFileRepository.mark_failed(file_id, str(e), conn)
                logger.error(f"Upload {file_id} failed and was rolled back: {e}")
                raise ReconciliationError(f"Database error: {e}", file_id=file_id) from e
            except Exception as e:
                UploadedFileRepository.mark_failed(file_id, str(e), conn)
                logger.exception(f"Upload {file_id} failed unexpectedly and was rolled back")
                raise ReconciliationError(f"Unexpected error: {e}", file_id=file_id) from e

        return UploadResult(
            file_id=file_id,
            upload_case=classification.upload_case,
            inserted_count=outcome.inserted_count,
            updated_count=outcome.updated_count,
            file_hash=file_hash,
            rows_count=len(rows),
        )

    # =========================================================================
    # Upload history
    # =========================================================================

    def upload_history(self, showroom_id: str, file_type: Optional[str] = None,
                       limit: int = 50) -> List[UploadedFile]:
        if file_type:
            file_type = get_file_type_config(file_type).file_type.value
        return UploadedFileRepository.list_by_showroom(showroom_id, file_type, limit)

    def upload_stats(self, showroom_id: str, file_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if file_type:
            file_type = get_file_type_config(file_type).file_type.value
        return UploadedFileRepository.stats_by_showroom(showroom_id, file_type)

    def file_details(self, file_id: int) -> UploadedFile:
        uploaded = UploadedFileRepository.get_by_id(file_id)
        if uploaded is None:
            raise UploadNotFoundError(file_id)
        return uploaded

    def delete_file(self, file_id: int) -> int:
        """
        Delete an upload and the records it last wrote.

        Records since rebound to a later upload are kept. Returns the number
        of records deleted.
        """
        with get_connection() as conn:
            with transaction(conn):
                if UploadedFileRepository.get_by_id(file_id, conn) is None:
                    raise UploadNotFoundError(file_id)
                deleted = BusinessRecordRepository.delete_by_file(file_id, conn)
                UploadedFileRepository.delete(file_id, conn)

        logger.info(f"Deleted upload {file_id} and {deleted} records")
        return deleted
