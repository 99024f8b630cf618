"""Health check endpoints."""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel

from api.database import get_connection, get_db_path
from core.config import get_config
from models.ingestion import FILE_TYPE_CONFIGS

router = APIRouter()

# Version info - updated on build/deploy
APP_VERSION = "1.0.0"
BUILD_TIME = datetime.now(timezone.utc).isoformat()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    build_time: str
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns system health status including:
    - Database connectivity and record tables
    - Matching timezone
    """
    checks = {}
    overall_status = "healthy"

    db_path = get_db_path()
    try:
        with get_connection() as conn:
            tables = {
                row["name"] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'"
                ).fetchall()
            }
        expected = {"uploaded_files"} | {c.table for c in FILE_TYPE_CONFIGS.values()}
        missing = sorted(expected - tables)
        checks["database"] = {
            "status": "ok" if not missing else "not_initialized",
            "path": str(db_path),
            "missing_tables": missing,
        }
        if missing:
            overall_status = "degraded"
    except Exception as e:
        checks["database"] = {"status": "error", "path": str(db_path), "error": str(e)}
        overall_status = "unhealthy"

    checks["matching"] = {"timezone": get_config().matching.timezone}

    return HealthResponse(
        status=overall_status,
        version=APP_VERSION,
        build_time=BUILD_TIME,
        checks=checks,
    )


@router.get("/ready")
async def readiness_check():
    """Simple readiness probe for k8s/docker."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Simple liveness probe for k8s/docker."""
    return {"alive": True}
