"""Row validation: required business-key fields must be present and non-empty."""

import logging
from typing import Any, Dict, List, Mapping, Sequence

from core.config import get_config
from core.exceptions import ValidationError
from models.ingestion import FileType, get_file_type_config

logger = logging.getLogger(__name__)

# Part codes that exports emit for summary lines rather than real parts
INVALID_PART_CODES = {"0"}


def _row_problems(row: Mapping[str, Any], required: Sequence[str], file_type: FileType) -> List[str]:
    problems = []
    for name in required:
        value = row.get(name)
        if value is None or str(value).strip() == "":
            problems.append(name)
        elif (file_type == FileType.OPERATIONS_PART and name == "op_part_code"
              and str(value).strip() in INVALID_PART_CODES):
            problems.append(name)
    return problems


def validate_batch(rows: Sequence[Mapping[str, Any]], file_type: Any) -> None:
    """
    Validate a whole mapped batch before anything is written.

    Raises:
        ValidationError: the batch is empty, the first row lacks a required
            column, or any row has an empty/invalid required value.
        ClassificationError: unknown file type.
    """
    config = get_file_type_config(file_type)
    required = config.required_fields
    sample_limit = get_config().ingest.validation_sample_rows

    if not rows:
        raise ValidationError("Excel file is empty or contains no valid data")

    available = list(rows[0].keys())
    missing_columns = [name for name in required if name not in available]
    if missing_columns:
        logger.warning(f"Missing required columns for {config.file_type.value}: {missing_columns}")
        raise ValidationError(
            f"Missing required columns: {', '.join(missing_columns)}. "
            f"Available columns: {', '.join(available)}",
            missing_fields=missing_columns,
        )

    invalid: List[Dict[str, Any]] = []
    missing_fields: List[str] = []
    for index, row in enumerate(rows, start=1):
        problems = _row_problems(row, required, config.file_type)
        if not problems:
            continue
        invalid.append({"row_number": index, "fields": problems, "row": dict(row)})
        for name in problems:
            if name not in missing_fields:
                missing_fields.append(name)

    if invalid:
        logger.warning(
            f"Found {len(invalid)} rows with empty/invalid required fields "
            f"({', '.join(missing_fields)})"
        )
        raise ValidationError(
            f"Found {len(invalid)} rows with empty or invalid required fields "
            f"({', '.join(missing_fields)}). Required fields for "
            f"{config.file_type.value}: {', '.join(required)}",
            missing_fields=missing_fields,
            sample_rows=invalid[:sample_limit],
            invalid_row_count=len(invalid),
        )
