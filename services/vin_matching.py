"""
VIN matching between booking lists and repair-order lists.

For one showroom, every booking is classified fresh on each call:

1. Booking VIN found among the repair-order VINs -> Converted
2. Otherwise by scheduled date, against "today" in the configured zone:
   - on or before today -> Booking Processing
   - tomorrow -> Tomorrow Delivery
   - later -> Future Delivery
   - missing or unparseable -> Booking Processing

Nothing is stored; results always reflect the current state of both
datasets, whichever was uploaded last.

Failures are logged and replaced with an empty result. A dashboard read
must never fail because one showroom's data is malformed.
"""

import logging
import sqlite3
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Set
from zoneinfo import ZoneInfo

from api.models import BusinessRecordRepository
from core.config import get_config
from core.exceptions import MatchingError
from extractors.date_converter import parse_booking_date
from models.ingestion import (
    BookingMatch,
    BookingStatus,
    FileType,
    StatusCategory,
    VINMatchResult,
)

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def normalize_vin(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().upper()


def local_today() -> date:
    """Today's date in the configured matching timezone."""
    return datetime.now(ZoneInfo(get_config().matching.timezone)).date()


def get_repair_order_vins(showroom_id: str) -> Set[str]:
    """Normalized VIN set of a showroom's repair orders."""
    try:
        records = BusinessRecordRepository.list_by_showroom(FileType.REPAIR_ORDER_LIST, showroom_id)
    except sqlite3.Error as e:
        raise MatchingError(f"Could not read repair orders for {showroom_id}: {e}") from e
    return {vin for vin in (normalize_vin(r.data.get("vin")) for r in records) if vin}


def classify_booking(booking: Dict[str, Any], repair_order_vins: Set[str], today: date) -> BookingMatch:
    """Status of one booking. VIN match wins over any date rule."""
    vin = normalize_vin(booking.get("vin_number"))
    booking_date = parse_booking_date(booking.get("bt_date_time"))

    if vin and vin in repair_order_vins:
        return BookingMatch(booking, True, BookingStatus.CONVERTED, booking_date)

    if booking_date is None or booking_date <= today:
        status = BookingStatus.PROCESSING
    elif booking_date == today + timedelta(days=1):
        status = BookingStatus.TOMORROW
    else:
        status = BookingStatus.FUTURE
    return BookingMatch(booking, False, status, booking_date)


def _empty_counts() -> Dict[str, int]:
    counts = {"count": 0}
    counts.update({category.value: 0 for category in StatusCategory})
    return counts


def build_advisor_breakdown(matches: List[BookingMatch]):
    """Advisor x work type counts per status category.

    Returns (breakdown, totals): breakdown rows sorted by advisor then work
    type, totals per advisor sorted by booking count, highest first.
    """
    advisors: Dict[str, Dict[str, Any]] = OrderedDict()

    for match in matches:
        booking = match.booking
        advisor = booking.get("service_advisor") or UNKNOWN
        work_type = booking.get("work_type") or UNKNOWN
        excel_status = booking.get("booking_status") or booking.get("status") or UNKNOWN
        category = match.status_category.value

        entry = advisors.setdefault(advisor, {**_empty_counts(), "work_types": OrderedDict()})
        wt = entry["work_types"].setdefault(work_type, {**_empty_counts(), "excel_statuses": {}})

        for bucket in (entry, wt):
            bucket["count"] += 1
            bucket[category] += 1
        wt["excel_statuses"][excel_status] = wt["excel_statuses"].get(excel_status, 0) + 1

    breakdown = []
    totals = []
    for advisor, entry in advisors.items():
        for work_type, wt in entry["work_types"].items():
            converted = wt[StatusCategory.CONVERTED.value]
            breakdown.append({
                "advisor": advisor,
                "work_type": work_type,
                **{k: wt[k] for k in _empty_counts()},
                "conversion_rate": round(converted / wt["count"] * 100) if wt["count"] else 0,
                "excel_statuses": wt["excel_statuses"],
            })
        totals.append({"advisor": advisor, **{k: entry[k] for k in _empty_counts()}})

    breakdown.sort(key=lambda row: (str(row["advisor"]), str(row["work_type"])))
    totals.sort(key=lambda row: row["count"], reverse=True)
    return breakdown, totals


def _match(showroom_id: str, today: date) -> VINMatchResult:
    repair_order_vins = get_repair_order_vins(showroom_id)
    try:
        records = BusinessRecordRepository.list_by_showroom(FileType.BOOKING_LIST, showroom_id)
    except sqlite3.Error as e:
        raise MatchingError(f"Could not read bookings for {showroom_id}: {e}") from e

    if not records:
        logger.info(f"No booking records for showroom {showroom_id}")
        return VINMatchResult.empty()

    matches = [classify_booking(r.to_dict(), repair_order_vins, today) for r in records]

    summary: Dict[str, Dict[str, Any]] = OrderedDict()
    for match in matches:
        entry = summary.setdefault(
            match.status_category.value,
            {"status": match.status.value, "count": 0, "records": []},
        )
        entry["count"] += 1
        entry["records"].append(match)

    breakdown, totals = build_advisor_breakdown(matches)
    matched = sum(1 for m in matches if m.vin_matched)

    return VINMatchResult(
        bookings=matches,
        status_summary=summary,
        total_bookings=len(matches),
        matched_vins=matched,
        unmatched_vins=len(matches) - matched,
        advisor_breakdown=breakdown,
        advisor_totals=totals,
    )


def perform_vin_matching(showroom_id: str, today: Optional[date] = None) -> VINMatchResult:
    """
    Classify every booking of a showroom against its repair orders.

    Args:
        showroom_id: Tenant scope
        today: Reference date; defaults to today in MATCHING_TIMEZONE

    Returns:
        VINMatchResult, or VINMatchResult.empty() if anything goes wrong
    """
    try:
        reference = today or local_today()
        result = _match(showroom_id, reference)
    except Exception:
        logger.exception(f"VIN matching failed for showroom {showroom_id}")
        return VINMatchResult.empty()

    logger.info(
        f"VIN matching for showroom {showroom_id}: {result.total_bookings} bookings, "
        f"{result.matched_vins} matched, {result.unmatched_vins} unmatched"
    )
    return result
