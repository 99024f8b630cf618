"""Data models for service-center spreadsheet ingestion."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from core.exceptions import ClassificationError


class FileType(str, Enum):
    RO_BILLING = "ro_billing"
    WARRANTY = "warranty"
    BOOKING_LIST = "booking_list"
    OPERATIONS_PART = "operations_part"
    REPAIR_ORDER_LIST = "repair_order_list"


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadCase(str, Enum):
    NEW_FILE = "CASE_1_NEW_FILE"
    DUPLICATE_FILE = "CASE_2_DUPLICATE_FILE"
    MIXED_FILE = "CASE_3_MIXED_FILE"


class StatusCategory(str, Enum):
    CONVERTED = "converted"
    PROCESSING = "processing"
    TOMORROW = "tomorrow"
    FUTURE = "future"


class BookingStatus(str, Enum):
    CONVERTED = "Converted"
    PROCESSING = "Booking Processing"
    TOMORROW = "Tomorrow Delivery"
    FUTURE = "Future Delivery"

    @property
    def category(self) -> StatusCategory:
        return StatusCategory[self.name]


KEY_SEPARATOR = "|"


@dataclass(frozen=True)
class BusinessKey:
    """Identity of a record within a showroom.

    One field for most file types; several fields form a composite key.
    The variant is fixed per file type, so callers never branch per row.
    """
    fields: Tuple[str, ...]

    @property
    def is_composite(self) -> bool:
        return len(self.fields) > 1

    def value_for(self, row: Mapping[str, Any]) -> str:
        """Stored key string for a canonical row ("" when any part is blank)."""
        parts = []
        for name in self.fields:
            value = row.get(name)
            text = "" if value is None else str(value).strip()
            if not text:
                return ""
            parts.append(text)
        return KEY_SEPARATOR.join(parts)

    def strip_from(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy of row without key fields (keys are never overwritten on update)."""
        return {k: v for k, v in row.items() if k not in self.fields}


@dataclass(frozen=True)
class FileTypeConfig:
    """Everything the pipeline needs to know about one file type."""
    file_type: FileType
    name: str
    table: str
    business_key: BusinessKey
    required_fields: Tuple[str, ...]
    boolean_fields: FrozenSet[str] = frozenset()
    numeric_fields: FrozenSet[str] = frozenset()
    date_fields: FrozenSet[str] = frozenset()


FILE_TYPE_CONFIGS: Dict[FileType, FileTypeConfig] = {
    FileType.RO_BILLING: FileTypeConfig(
        file_type=FileType.RO_BILLING,
        name="RO Billing",
        table="ro_billing_records",
        business_key=BusinessKey(("ro_no",)),
        required_fields=("ro_no",),
        numeric_fields=frozenset({
            "labour_amt", "part_amt", "total_amount", "discount_amount",
            "round_off_amount", "service_tax", "vat_amount", "labour_tax",
            "part_tax", "other_amount",
        }),
        date_fields=frozenset({"bill_date"}),
    ),
    FileType.WARRANTY: FileTypeConfig(
        file_type=FileType.WARRANTY,
        name="Warranty",
        table="warranty_records",
        business_key=BusinessKey(("claim_number",)),
        required_fields=("claim_number",),
        numeric_fields=frozenset({
            "labour_amount", "part_amount", "total_claim_amount", "approved_amount",
        }),
        date_fields=frozenset({"claim_date"}),
    ),
    FileType.BOOKING_LIST: FileTypeConfig(
        file_type=FileType.BOOKING_LIST,
        name="Booking List",
        table="booking_list_records",
        business_key=BusinessKey(("reg_no",)),
        required_fields=("reg_no",),
        boolean_fields=frozenset({"reminder_sent"}),
        date_fields=frozenset({"bt_date_time"}),
    ),
    FileType.OPERATIONS_PART: FileTypeConfig(
        file_type=FileType.OPERATIONS_PART,
        name="Operations/Part",
        table="operations_part_records",
        business_key=BusinessKey(("op_part_code",)),
        required_fields=("op_part_code",),
    ),
    FileType.REPAIR_ORDER_LIST: FileTypeConfig(
        file_type=FileType.REPAIR_ORDER_LIST,
        name="Repair Order List",
        table="repair_order_list_records",
        business_key=BusinessKey(("vin",)),
        required_fields=("ro_no", "vin"),
        numeric_fields=frozenset({"estimated_amount", "actual_amount"}),
    ),
}


def parse_file_type(file_type: Any) -> FileType:
    """Coerce a string to FileType, raising ClassificationError if unknown."""
    if isinstance(file_type, FileType):
        return file_type
    try:
        return FileType(file_type)
    except ValueError:
        valid = ", ".join(ft.value for ft in FileType)
        raise ClassificationError(f"Invalid file type: {file_type!r}. Must be one of: {valid}")


def get_file_type_config(file_type: Any) -> FileTypeConfig:
    return FILE_TYPE_CONFIGS[parse_file_type(file_type)]


@dataclass
class FileMetadata:
    """Caller-supplied facts about an upload, before it is stored."""
    file_type: FileType
    uploaded_file_name: str
    uploaded_by: str
    showroom_id: str
    org_id: Optional[str] = None
    db_file_name: Optional[str] = None
    file_size: int = 0


@dataclass
class Classification:
    """Which reconciliation case applies and how the rows partition."""
    upload_case: UploadCase
    file_type: FileType
    showroom_id: str
    file_hash: str
    total_rows: int
    excel_keys: List[str] = field(default_factory=list)
    existing_keys: List[str] = field(default_factory=list)
    new_keys: List[str] = field(default_factory=list)
    # business_key -> stored record for every existing key
    matched_records: Dict[str, Any] = field(default_factory=dict)
    existing_rows: List[Dict[str, Any]] = field(default_factory=list)
    new_rows: List[Dict[str, Any]] = field(default_factory=list)
    duplicate_file_id: Optional[int] = None


@dataclass
class ReconcileResult:
    inserted_count: int = 0
    updated_count: int = 0

    @property
    def total_processed(self) -> int:
        return self.inserted_count + self.updated_count


@dataclass
class UploadResult:
    """Outcome of a successful upload."""
    file_id: int
    upload_case: UploadCase
    inserted_count: int
    updated_count: int
    file_hash: str
    rows_count: int
    vin_matching: Optional[Dict[str, int]] = None

    @property
    def total_processed(self) -> int:
        return self.inserted_count + self.updated_count

    @property
    def message(self) -> str:
        return f"Successfully processed {self.total_processed} rows using {self.upload_case.value}"


@dataclass
class BookingMatch:
    """Computed (never stored) match outcome for one booking."""
    booking: Dict[str, Any]
    vin_matched: bool
    status: BookingStatus
    booking_date: Optional[date] = None

    @property
    def status_category(self) -> StatusCategory:
        return self.status.category

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.booking,
            "vin_matched": self.vin_matched,
            "computed_status": self.status.value,
            "status_category": self.status_category.value,
            "booking_date_parsed": self.booking_date.isoformat() if self.booking_date else None,
        }


@dataclass
class VINMatchResult:
    """Per-showroom partition of bookings into workflow statuses."""
    bookings: List[BookingMatch] = field(default_factory=list)
    status_summary: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    total_bookings: int = 0
    matched_vins: int = 0
    unmatched_vins: int = 0
    advisor_breakdown: List[Dict[str, Any]] = field(default_factory=list)
    advisor_totals: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "VINMatchResult":
        return cls()

    def summary_counts(self) -> Dict[str, int]:
        counts = {category: entry["count"] for category, entry in self.status_summary.items()}
        counts.update(
            total_bookings=self.total_bookings,
            matched_vins=self.matched_vins,
            unmatched_vins=self.unmatched_vins,
        )
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookings": [b.to_dict() for b in self.bookings],
            "status_summary": {
                category: {
                    "status": entry["status"],
                    "count": entry["count"],
                    "records": [b.to_dict() for b in entry["records"]],
                }
                for category, entry in self.status_summary.items()
            },
            "total_bookings": self.total_bookings,
            "matched_vins": self.matched_vins,
            "unmatched_vins": self.unmatched_vins,
            "advisor_breakdown": self.advisor_breakdown,
            "advisor_totals": self.advisor_totals,
        }
