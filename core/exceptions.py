"""Error taxonomy for spreadsheet ingestion and VIN matching."""
from typing import Any, Dict, List, Optional


class IngestionError(Exception):
    """Base class for upload pipeline errors."""
    pass


class SheetParseError(IngestionError):
    """Raised when an uploaded spreadsheet cannot be turned into rows."""
    pass


class ValidationError(IngestionError):
    """Required business-key fields are missing, empty or invalid.

    Raised before any row of the batch is written.
    """

    def __init__(
        self,
        message: str,
        missing_fields: Optional[List[str]] = None,
        sample_rows: Optional[List[Dict[str, Any]]] = None,
        invalid_row_count: int = 0,
    ):
        super().__init__(message)
        self.missing_fields = missing_fields or []
        self.sample_rows = sample_rows or []
        self.invalid_row_count = invalid_row_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": str(self),
            "missing_fields": self.missing_fields,
            "invalid_row_count": self.invalid_row_count,
            "sample_rows": self.sample_rows,
        }


class ClassificationError(IngestionError):
    """Unknown file type reached the classifier (integration bug)."""
    pass


class ReconciliationError(IngestionError):
    """A row write failed; the batch was rolled back."""

    def __init__(self, message: str, file_id: Optional[int] = None):
        super().__init__(message)
        self.file_id = file_id


class MatchingError(Exception):
    """Internal VIN-matching fault. Never escapes perform_vin_matching."""
    pass


class UploadNotFoundError(IngestionError):
    """No uploaded file with the requested ID."""

    def __init__(self, file_id: int):
        super().__init__(f"File not found: {file_id}")
        self.file_id = file_id
