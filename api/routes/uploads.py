"""
Excel Upload API Routes

Upload service-center spreadsheets and inspect upload history.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel

from core.exceptions import (
    ClassificationError,
    ReconciliationError,
    SheetParseError,
    UploadNotFoundError,
    ValidationError,
)
from core.logging_config import get_logger
from models.ingestion import FileMetadata, get_file_type_config
from services.orchestrator import UploadOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/api/excel", tags=["Excel Upload"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class UploadResponse(BaseModel):
    """Response model for a successful upload."""
    success: bool = True
    message: str
    file_id: int
    file_type: str
    upload_case: str
    rows_count: int
    inserted_count: int
    updated_count: int
    total_processed: int
    file_hash: str
    vin_matching: Optional[Dict[str, int]] = None


class UploadedFileResponse(BaseModel):
    """Response model for an uploaded file record."""
    id: int
    uploaded_file_name: str
    db_file_name: Optional[str] = None
    rows_count: int = 0
    uploaded_by: str
    org_id: Optional[str] = None
    showroom_id: str
    file_type: str
    file_size: Optional[int] = 0
    file_hash: Optional[str] = None
    processing_status: str
    upload_case: Optional[str] = None
    rows_inserted: Optional[int] = 0
    rows_updated: Optional[int] = 0
    error_message: Optional[str] = None
    uploaded_at: str
    updated_at: str


class UploadHistoryResponse(BaseModel):
    """Response model for upload history."""
    items: List[UploadedFileResponse]
    count: int


class UploadStatsEntry(BaseModel):
    """Upload counts for one file type."""
    file_type: str
    total_files: int
    total_rows: int
    successful_uploads: int
    failed_uploads: int
    last_upload: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool = True
    file_id: int
    deleted_records: int


def _orchestrator() -> UploadOrchestrator:
    return UploadOrchestrator()


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_excel(
    file: UploadFile = File(..., description="Spreadsheet (.xlsx, .xls or .csv)"),
    file_type: str = Form(..., description="ro_billing, warranty, booking_list, operations_part or repair_order_list"),
    uploaded_by: str = Form(..., description="Uploader identifier"),
    showroom_id: str = Form(..., description="Showroom (tenant) the rows belong to"),
    org_id: Optional[str] = Form(None, description="Organization identifier"),
):
    """
    Upload a spreadsheet and reconcile its rows into the showroom's records.

    The batch is classified as a new file, an exact duplicate of a prior
    upload, or a mixed file, and applied in a single transaction.
    """
    try:
        config = get_file_type_config(file_type)
    except ClassificationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")

    meta = FileMetadata(
        file_type=config.file_type,
        uploaded_file_name=file.filename or "upload.xlsx",
        uploaded_by=uploaded_by,
        showroom_id=showroom_id,
        org_id=org_id,
        db_file_name=file.filename,
        file_size=len(content),
    )

    try:
        result = _orchestrator().upload_excel(meta, content)
    except ValidationError as e:
        logger.warning(f"Upload rejected: {e}")
        raise HTTPException(status_code=400, detail=e.to_dict())
    except (SheetParseError, ClassificationError) as e:
        logger.warning(f"Upload rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except ReconciliationError as e:
        raise HTTPException(
            status_code=500,
            detail={"error": f"Failed to process Excel file: {e}", "file_id": e.file_id},
        )

    return UploadResponse(
        message=result.message,
        file_id=result.file_id,
        file_type=config.file_type.value,
        upload_case=result.upload_case.value,
        rows_count=result.rows_count,
        inserted_count=result.inserted_count,
        updated_count=result.updated_count,
        total_processed=result.total_processed,
        file_hash=result.file_hash,
        vin_matching=result.vin_matching,
    )


@router.get("/history/{showroom_id}", response_model=UploadHistoryResponse)
async def get_upload_history(
    showroom_id: str,
    file_type: Optional[str] = Query(None, description="Filter by file type"),
    limit: int = Query(50, ge=1, le=500),
):
    """Uploads for a showroom, newest first."""
    try:
        files = _orchestrator().upload_history(showroom_id, file_type, limit)
    except ClassificationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    items = [UploadedFileResponse(**f.to_dict()) for f in files]
    return UploadHistoryResponse(items=items, count=len(items))


@router.get("/stats/{showroom_id}", response_model=List[UploadStatsEntry])
async def get_upload_stats(
    showroom_id: str,
    file_type: Optional[str] = Query(None, description="Filter by file type"),
):
    """Upload totals grouped by file type."""
    try:
        stats = _orchestrator().upload_stats(showroom_id, file_type)
    except ClassificationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [UploadStatsEntry(**entry) for entry in stats]


@router.get("/file/{file_id}", response_model=UploadedFileResponse)
async def get_file_details(file_id: int):
    """Get one uploaded file record."""
    try:
        uploaded = _orchestrator().file_details(file_id)
    except UploadNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    return UploadedFileResponse(**uploaded.to_dict())


@router.delete("/file/{file_id}", response_model=DeleteResponse)
async def delete_uploaded_file(file_id: int):
    """Delete an uploaded file and the records it last wrote."""
    try:
        deleted = _orchestrator().delete_file(file_id)
    except UploadNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    return DeleteResponse(file_id=file_id, deleted_records=deleted)
