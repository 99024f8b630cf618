"""Services for service-center spreadsheet ingestion."""

from services.classifier import classify_upload
from services.fingerprint import find_completed_duplicate, fingerprint
from services.orchestrator import UploadOrchestrator
from services.reconciliation import reconcile
from services.validation import validate_batch
from services.vin_matching import perform_vin_matching

__all__ = [
    # Validation
    "validate_batch",
    # Fingerprinting
    "fingerprint",
    "find_completed_duplicate",
    # Classification / reconciliation
    "classify_upload",
    "reconcile",
    # Workflow
    "UploadOrchestrator",
    # VIN matching
    "perform_vin_matching",
]
