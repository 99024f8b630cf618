"""
Booking List API Routes

VIN-matched booking status for the dashboard.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from models.ingestion import VINMatchResult
from services.vin_matching import perform_vin_matching

router = APIRouter(prefix="/api/booking-list", tags=["Booking List"])


class StatusSummaryEntry(BaseModel):
    status: str
    count: int
    records: List[Dict[str, Any]] = []


class VINMatchingResponse(BaseModel):
    """Bookings with computed status, summary counts and advisor breakdowns."""
    success: bool = True
    bookings: List[Dict[str, Any]]
    status_summary: Dict[str, StatusSummaryEntry]
    total_bookings: int
    matched_vins: int
    unmatched_vins: int
    advisor_breakdown: List[Dict[str, Any]]
    advisor_totals: List[Dict[str, Any]]


def _response(result: VINMatchResult, include_records: bool) -> VINMatchingResponse:
    data = result.to_dict()
    if not include_records:
        for entry in data["status_summary"].values():
            entry["records"] = []
    return VINMatchingResponse(**data)


@router.get("/vin-matching/{showroom_id}", response_model=VINMatchingResponse)
async def get_vin_matching(
    showroom_id: str,
    include_records: bool = Query(False, description="Repeat booking rows inside status_summary"),
    category: Optional[str] = Query(None, description="Only return bookings in this status category"),
):
    """
    Classify every booking of a showroom against its repair orders.

    Never fails on bad data: an internal error yields an empty result.
    """
    result = perform_vin_matching(showroom_id)
    response = _response(result, include_records)
    if category:
        response.bookings = [b for b in response.bookings if b.get("status_category") == category]
    return response
