"""FastAPI service for service-center spreadsheet ingestion.

Run with: uvicorn api.main:app --reload --port 8000

Endpoints:
- /api/health - Health check
- /api/excel/upload - Upload and reconcile a spreadsheet
- /api/excel/history/{showroom_id} - Upload history
- /api/excel/stats/{showroom_id} - Upload statistics by file type
- /api/excel/file/{file_id} - File details / delete with records
- /api/booking-list/vin-matching/{showroom_id} - VIN-matched booking status
"""
import uuid
from contextvars import ContextVar

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from api.database import init_db
from api.routes import bookings, health, uploads
from core.config import get_config
from core.logging_config import setup_logging

# Context variable for request ID - accessible throughout the request lifecycle
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.

    - Uses the client's X-Request-ID or generates one
    - Sets it in a context variable for access throughout the request
    - Adds X-Request-ID header to responses
    """
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


def get_request_id() -> str:
    """Get the current request ID from context."""
    return request_id_var.get()


app = FastAPI(
    title="Service Center Reports",
    description="Spreadsheet ingestion, reconciliation and VIN matching for service centers",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Request ID middleware - add first so it runs for all requests
app.add_middleware(RequestIDMiddleware)

# CORS for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(uploads.router)
app.include_router(bookings.router)


# Initialize logging and database on startup
@app.on_event("startup")
async def startup():
    config = get_config()
    setup_logging(level=config.log_level, format_type=config.log_format)
    init_db()
