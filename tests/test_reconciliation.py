"""
End-to-end reconciliation tests.

Drives the orchestrator through the three upload cases against a real
SQLite database and checks what ends up stored.
"""

import sqlite3

import pytest

from api.models import BusinessRecordRepository, UploadedFileRepository
from core.exceptions import ReconciliationError, UploadNotFoundError, ValidationError
from models.ingestion import FileType, ProcessingStatus, UploadCase


def stored(showroom_id="SR001", file_type=FileType.RO_BILLING):
    return {r.business_key: r for r in BusinessRecordRepository.list_by_showroom(file_type, showroom_id)}


@pytest.fixture
def file_b():
    """RO 101 with a new amount, plus a new RO 103."""
    return [
        {"R/O No": "101", "Customer Name": "Ravi", "Total Amt": "950", "Bill Date": "45932"},
        {"R/O No": "103", "Customer Name": "Kiran", "Total Amt": "300", "Bill Date": "45933"},
    ]


class TestUploadCases:
    """A new file, the same file again, then an overlapping file."""

    def test_case_1_new_file(self, orchestrator, make_meta, ro_billing_rows):
        result = orchestrator.process_rows(make_meta(), ro_billing_rows)

        assert result.upload_case == UploadCase.NEW_FILE
        assert result.inserted_count == 3
        assert result.updated_count == 0
        assert result.message == "Successfully processed 3 rows using CASE_1_NEW_FILE"

        records = stored()
        assert set(records) == {"100", "101", "102"}
        assert records["100"].data["total_amount"] == 1200.5
        assert records["100"].data["bill_date"] == "01/10/2025"
        assert records["102"].data["total_amount"] == 450.0
        assert records["102"].data["bill_date"] == "01/10/2025"
        assert all(r.uploaded_file_id == result.file_id for r in records.values())

        uploaded = UploadedFileRepository.get_by_id(result.file_id)
        assert uploaded.processing_status == ProcessingStatus.COMPLETED.value
        assert uploaded.upload_case == UploadCase.NEW_FILE.value
        assert uploaded.rows_inserted == 3
        assert uploaded.rows_count == 3

    def test_case_2_duplicate_file(self, orchestrator, make_meta, ro_billing_rows):
        first = orchestrator.process_rows(make_meta(), ro_billing_rows)
        second = orchestrator.process_rows(make_meta(name="again.xlsx"), ro_billing_rows)

        assert second.upload_case == UploadCase.DUPLICATE_FILE
        assert second.inserted_count == 0
        assert second.updated_count == 3
        assert second.file_hash == first.file_hash

        records = stored()
        assert len(records) == 3
        assert all(r.uploaded_file_id == second.file_id for r in records.values())

    def test_case_3_mixed_file(self, orchestrator, make_meta, ro_billing_rows, file_b):
        first = orchestrator.process_rows(make_meta(), ro_billing_rows)
        before = stored()

        result = orchestrator.process_rows(make_meta(name="b.xlsx"), file_b)

        assert result.upload_case == UploadCase.MIXED_FILE
        assert result.updated_count == 1
        assert result.inserted_count == 1

        records = stored()
        assert set(records) == {"100", "101", "102", "103"}
        assert records["101"].data["total_amount"] == 950.0
        assert records["101"].id == before["101"].id
        assert records["101"].created_at == before["101"].created_at
        assert records["101"].uploaded_file_id == result.file_id
        assert records["103"].uploaded_file_id == result.file_id
        # Untouched by file B
        assert records["102"].data == before["102"].data
        assert records["102"].uploaded_file_id == first.file_id
        assert records["102"].updated_at == before["102"].updated_at

    def test_update_keeps_unlisted_fields(self, orchestrator, make_meta, ro_billing_rows):
        orchestrator.process_rows(make_meta(), ro_billing_rows)
        orchestrator.process_rows(make_meta(), [{"R/O No": "100", "Technician": "Das"}, {"R/O No": "104"}])

        record = stored()["100"]
        assert record.data["technician_name"] == "Das"
        assert record.data["customer_name"] == "Asha"
        assert record.data["ro_no"] == "100"

    def test_repeated_key_within_batch(self, orchestrator, make_meta):
        rows = [
            {"R/O No": "200", "Customer Name": "First"},
            {"R/O No": "201"},
            {"R/O No": "200", "Customer Name": "Second"},
        ]
        result = orchestrator.process_rows(make_meta(), rows)

        assert result.inserted_count == 2
        assert result.updated_count == 1
        assert stored()["200"].data["customer_name"] == "Second"

    def test_showrooms_are_isolated(self, orchestrator, make_meta, ro_billing_rows):
        orchestrator.process_rows(make_meta(showroom_id="SR001"), ro_billing_rows)
        result = orchestrator.process_rows(make_meta(showroom_id="SR002"), ro_billing_rows)

        assert result.upload_case == UploadCase.NEW_FILE
        assert result.inserted_count == 3
        assert len(stored("SR001")) == 3
        assert len(stored("SR002")) == 3

    def test_key_unique_per_showroom(self, orchestrator, make_meta, ro_billing_rows, file_b, db_connection):
        orchestrator.process_rows(make_meta(), ro_billing_rows)
        orchestrator.process_rows(make_meta(), ro_billing_rows)
        orchestrator.process_rows(make_meta(), file_b)

        duplicates = db_connection.execute(
            """SELECT business_key, COUNT(*) FROM ro_billing_records
               GROUP BY showroom_id, business_key HAVING COUNT(*) > 1"""
        ).fetchall()
        assert duplicates == []


class TestFailures:
    """Nothing is written when a batch is rejected or a write fails."""

    def test_validation_rejection_writes_nothing(self, orchestrator, make_meta, db_connection):
        rows = [{"R/O No": "100"}, {"R/O No": ""}]
        with pytest.raises(ValidationError):
            orchestrator.process_rows(make_meta(), rows)

        assert stored() == {}
        count = db_connection.execute("SELECT COUNT(*) FROM uploaded_files").fetchone()[0]
        assert count == 0

    def test_write_failure_rolls_back(self, orchestrator, make_meta, ro_billing_rows, monkeypatch):
        original = BusinessRecordRepository.upsert
        calls = []

        def flaky_upsert(*args, **kwargs):
            calls.append(args)
            if len(calls) == 3:
                raise sqlite3.OperationalError("disk I/O error")
            return original(*args, **kwargs)

        monkeypatch.setattr(BusinessRecordRepository, "upsert", staticmethod(flaky_upsert))

        with pytest.raises(ReconciliationError) as exc_info:
            orchestrator.process_rows(make_meta(), ro_billing_rows)

        assert "row 3" in str(exc_info.value)
        assert stored() == {}

        uploaded = UploadedFileRepository.get_by_id(exc_info.value.file_id)
        assert uploaded.processing_status == ProcessingStatus.FAILED.value
        assert "disk I/O error" in uploaded.error_message
        assert uploaded.upload_case is None

    def test_unexpected_error_marks_upload_failed(self, orchestrator, make_meta, ro_billing_rows,
                                                  monkeypatch):
        def exploding_upsert(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(BusinessRecordRepository, "upsert", staticmethod(exploding_upsert))

        with pytest.raises(ReconciliationError) as exc_info:
            orchestrator.process_rows(make_meta(), ro_billing_rows)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert stored() == {}

        uploaded = UploadedFileRepository.get_by_id(exc_info.value.file_id)
        assert uploaded.processing_status == ProcessingStatus.FAILED.value
        assert "boom" in uploaded.error_message

    def test_failed_upload_is_not_a_duplicate(self, orchestrator, make_meta, ro_billing_rows, monkeypatch):
        def broken_upsert(*args, **kwargs):
            raise sqlite3.OperationalError("locked")

        with monkeypatch.context() as m:
            m.setattr(BusinessRecordRepository, "upsert", staticmethod(broken_upsert))
            with pytest.raises(ReconciliationError):
                orchestrator.process_rows(make_meta(), ro_billing_rows)

        result = orchestrator.process_rows(make_meta(), ro_billing_rows)
        assert result.upload_case == UploadCase.NEW_FILE
        assert result.inserted_count == 3

    def test_row_limit(self, orchestrator, make_meta, monkeypatch):
        monkeypatch.setattr(orchestrator.config.ingest, "max_upload_rows", 2)
        rows = [{"R/O No": str(n)} for n in range(3)]
        with pytest.raises(ValidationError, match="limit"):
            orchestrator.process_rows(make_meta(), rows)


class TestDeleteFile:
    """Tests for UploadOrchestrator.delete_file."""

    def test_delete_cascades_to_records(self, orchestrator, make_meta, ro_billing_rows):
        result = orchestrator.process_rows(make_meta(), ro_billing_rows)

        assert orchestrator.delete_file(result.file_id) == 3
        assert stored() == {}
        assert UploadedFileRepository.get_by_id(result.file_id) is None

    def test_delete_keeps_rebound_records(self, orchestrator, make_meta, ro_billing_rows, file_b):
        first = orchestrator.process_rows(make_meta(), ro_billing_rows)
        orchestrator.process_rows(make_meta(), file_b)

        # 100 and 102 still belong to the first upload; 101 moved to file B
        assert orchestrator.delete_file(first.file_id) == 2
        assert set(stored()) == {"101", "103"}

    def test_delete_unknown_file(self, orchestrator):
        with pytest.raises(UploadNotFoundError):
            orchestrator.delete_file(999999)


class TestHistory:
    """Upload history and stats."""

    def test_history_newest_first(self, orchestrator, make_meta, ro_billing_rows, file_b):
        first = orchestrator.process_rows(make_meta(), ro_billing_rows)
        second = orchestrator.process_rows(make_meta(), file_b)

        history = orchestrator.upload_history("SR001")
        assert [f.id for f in history] == [second.file_id, first.file_id]
        assert orchestrator.upload_history("SR001", file_type="warranty") == []

    def test_stats(self, orchestrator, make_meta, ro_billing_rows):
        orchestrator.process_rows(make_meta(), ro_billing_rows)
        orchestrator.process_rows(make_meta(), ro_billing_rows)

        stats = orchestrator.upload_stats("SR001")
        assert len(stats) == 1
        assert stats[0]["file_type"] == "ro_billing"
        assert stats[0]["total_files"] == 2
        assert stats[0]["total_rows"] == 6
        assert stats[0]["successful_uploads"] == 2
        assert stats[0]["failed_uploads"] == 0

    def test_file_details_not_found(self, orchestrator):
        with pytest.raises(UploadNotFoundError):
            orchestrator.file_details(424242)
