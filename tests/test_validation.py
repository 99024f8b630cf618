"""Tests for batch validation of required business-key fields."""

import pytest

from core.exceptions import ClassificationError, ValidationError
from services.validation import validate_batch


class TestValidateBatch:
    """Tests for validate_batch."""

    def test_valid_batch_passes(self):
        rows = [{"ro_no": "100", "customer_name": "Asha"}, {"ro_no": "101"}]
        assert validate_batch(rows, "ro_billing") is None

    def test_empty_batch(self):
        with pytest.raises(ValidationError, match="empty"):
            validate_batch([], "ro_billing")

    def test_missing_required_column(self):
        """The first row decides which columns the sheet has."""
        rows = [{"customer_name": "Asha", "bill_date": "01/10/2025"}]
        with pytest.raises(ValidationError) as exc_info:
            validate_batch(rows, "ro_billing")
        error = exc_info.value
        assert error.missing_fields == ["ro_no"]
        assert "Missing required columns: ro_no" in str(error)
        assert "customer_name" in str(error)

    def test_empty_vin_in_repair_orders(self):
        """A blank VIN on any row rejects the batch with its row number."""
        rows = [
            {"ro_no": "R1", "vin": "MA3ERLF1S00123456"},
            {"ro_no": "R2", "vin": "   "},
            {"ro_no": "R3", "vin": "MA3ERLF1S00654321"},
        ]
        with pytest.raises(ValidationError) as exc_info:
            validate_batch(rows, "repair_order_list")
        error = exc_info.value
        assert error.invalid_row_count == 1
        assert error.missing_fields == ["vin"]
        assert error.sample_rows[0]["row_number"] == 2
        assert error.sample_rows[0]["fields"] == ["vin"]
        assert error.sample_rows[0]["row"]["ro_no"] == "R2"

    def test_both_repair_order_fields_reported(self):
        rows = [{"ro_no": "R1", "vin": "V1"}, {"ro_no": "", "vin": None}]
        with pytest.raises(ValidationError) as exc_info:
            validate_batch(rows, "repair_order_list")
        assert exc_info.value.missing_fields == ["ro_no", "vin"]

    def test_zero_part_code_is_invalid(self):
        rows = [{"op_part_code": "OP1"}, {"op_part_code": "0"}]
        with pytest.raises(ValidationError) as exc_info:
            validate_batch(rows, "operations_part")
        assert exc_info.value.sample_rows[0]["row_number"] == 2

    def test_zero_is_fine_outside_operations(self):
        validate_batch([{"claim_number": "0"}], "warranty")

    def test_sample_rows_are_capped(self):
        """Samples stop at VALIDATION_SAMPLE_ROWS; the count covers every row."""
        rows = [{"reg_no": "KA01"}] + [{"reg_no": ""} for _ in range(10)]
        with pytest.raises(ValidationError) as exc_info:
            validate_batch(rows, "booking_list")
        error = exc_info.value
        assert error.invalid_row_count == 10
        assert len(error.sample_rows) == 3
        assert [s["row_number"] for s in error.sample_rows] == [2, 3, 4]

    def test_to_dict(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_batch([{"reg_no": "KA01"}, {"reg_no": ""}], "booking_list")
        payload = exc_info.value.to_dict()
        assert set(payload) == {"error", "missing_fields", "invalid_row_count", "sample_rows"}
        assert payload["invalid_row_count"] == 1

    def test_unknown_file_type(self):
        with pytest.raises(ClassificationError):
            validate_batch([{"x": "1"}], "payroll")
