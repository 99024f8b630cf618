"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile

# Set environment variables BEFORE any imports that might use them
TEST_DB_PATH = tempfile.mktemp(suffix=".db")

os.environ["DATABASE_PATH"] = TEST_DB_PATH
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MATCHING_TIMEZONE"] = "Asia/Kolkata"
os.environ.pop("COLUMN_ALIASES_PATH", None)

import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Create the schema once for the session."""
    from api.database import init_db
    from core.config import reset_config
    from extractors.column_mapper import reset_column_mapper

    reset_config()
    reset_column_mapper()
    init_db()
    yield
    # Cleanup
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture(scope="session")
def app():
    """Create FastAPI test application."""
    from api.main import app

    return app


@pytest.fixture(scope="session")
def client(app):
    """Create test client."""
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def db_connection():
    """Get database connection for test assertions."""
    from api.database import get_connection

    with get_connection() as conn:
        yield conn


@pytest.fixture
def clean_db(db_connection):
    """Clean database tables before test."""
    from models.ingestion import FILE_TYPE_CONFIGS

    tables = ["uploaded_files"] + [c.table for c in FILE_TYPE_CONFIGS.values()]
    for table in tables:
        db_connection.execute(f"DELETE FROM {table}")
    yield


@pytest.fixture
def orchestrator(clean_db):
    """Upload orchestrator over an empty database."""
    from services.orchestrator import UploadOrchestrator

    return UploadOrchestrator()


@pytest.fixture
def make_meta():
    """Factory for upload metadata."""
    from models.ingestion import FileMetadata, parse_file_type

    def _make(file_type="ro_billing", showroom_id="SR001", name="upload.xlsx", user="tester"):
        return FileMetadata(
            file_type=parse_file_type(file_type),
            uploaded_file_name=name,
            uploaded_by=user,
            showroom_id=showroom_id,
        )

    return _make


@pytest.fixture
def ro_billing_rows():
    """Three raw RO billing rows as they come out of a dealer export."""
    return [
        {"R/O No": "100", "Customer Name": "Asha", "Total Amt": "1,200.50", "Bill Date": "45931"},
        {"R/O No": "101", "Customer Name": "Ravi", "Total Amt": "800", "Bill Date": "45932"},
        {"R/O No": "102", "Customer Name": "Meena", "Total Amt": "Rs. 450", "Bill Date": "01-10-2025"},
    ]


@pytest.fixture
def xlsx_bytes():
    """Build .xlsx bytes from a list of row dicts."""
    from io import BytesIO

    import pandas as pd

    def _build(rows):
        buffer = BytesIO()
        pd.DataFrame(rows).to_excel(buffer, index=False, engine="openpyxl")
        return buffer.getvalue()

    return _build
