"""Tests for batch fingerprinting and duplicate lookup."""

from models.ingestion import FileType, UploadCase
from services.fingerprint import find_completed_duplicate, fingerprint, fingerprint_payload

ROWS = [
    {"ro_no": "100", "total_amount": 1200.5},
    {"ro_no": "101", "total_amount": 800.0},
    {"ro_no": "102", "total_amount": 450.0},
]


class TestFingerprint:
    """Tests for fingerprint."""

    def test_is_hex_sha256(self):
        digest = fingerprint(ROWS, "ro_billing")
        assert len(digest) == 64
        int(digest, 16)

    def test_stable(self):
        assert fingerprint(ROWS, "ro_billing") == fingerprint([dict(r) for r in ROWS], FileType.RO_BILLING)

    def test_key_order_does_not_matter(self):
        reordered = [{"total_amount": r["total_amount"], "ro_no": r["ro_no"]} for r in ROWS]
        assert fingerprint(reordered, "ro_billing") == fingerprint(ROWS, "ro_billing")

    def test_file_type_changes_hash(self):
        assert fingerprint(ROWS, "ro_billing") != fingerprint(ROWS, "warranty")

    def test_row_count_changes_hash(self):
        longer = ROWS[:2] + [{"ro_no": "999"}] + ROWS[2:]
        assert fingerprint(longer, "ro_billing") != fingerprint(ROWS, "ro_billing")

    def test_boundary_rows_change_hash(self):
        changed = [dict(ROWS[0], total_amount=1.0)] + ROWS[1:]
        assert fingerprint(changed, "ro_billing") != fingerprint(ROWS, "ro_billing")

    def test_interior_rows_are_not_sampled(self):
        """Same boundaries and count: edits in the middle go unnoticed."""
        changed = [ROWS[0], {"ro_no": "555", "total_amount": 1.0}, ROWS[2]]
        assert fingerprint(changed, "ro_billing") == fingerprint(ROWS, "ro_billing")

    def test_payload_shape(self):
        payload = fingerprint_payload(ROWS, "ro_billing")
        assert payload == {
            "fileType": "ro_billing",
            "rowCount": 3,
            "firstRow": ROWS[0],
            "lastRow": ROWS[2],
        }

    def test_empty_rows(self):
        payload = fingerprint_payload([], "warranty")
        assert payload["firstRow"] is None and payload["lastRow"] is None
        assert len(fingerprint([], "warranty")) == 64


class TestFindCompletedDuplicate:
    """Only completed uploads in the same showroom and file type count."""

    def test_finds_completed_upload(self, orchestrator, make_meta, ro_billing_rows):
        result = orchestrator.process_rows(make_meta(), ro_billing_rows)
        duplicate = find_completed_duplicate(result.file_hash, "SR001", "ro_billing")
        assert duplicate is not None
        assert duplicate.id == result.file_id
        assert duplicate.upload_case == UploadCase.NEW_FILE.value

    def test_scoped_by_showroom_and_type(self, orchestrator, make_meta, ro_billing_rows):
        result = orchestrator.process_rows(make_meta(), ro_billing_rows)
        assert find_completed_duplicate(result.file_hash, "SR002", "ro_billing") is None
        assert find_completed_duplicate(result.file_hash, "SR001", "warranty") is None

    def test_unknown_hash(self, clean_db):
        assert find_completed_duplicate("0" * 64, "SR001", "ro_billing") is None
