"""
Column Mapper

Translates raw spreadsheet headers into canonical field names per file type.

Header resolution runs an ordered list of matcher strategies:

1. EXACT - header equals an alias
2. TRIMMED - header equals an alias after stripping whitespace
3. CASE_INSENSITIVE - trimmed, lower-cased header equals a lower-cased alias

The first strategy that returns a canonical name wins. Headers no strategy
recognizes pass through unchanged.

After key resolution, type-specific conversions are applied (flags to bool,
currency to float, serial dates to DD/MM/YYYY). Booking rows that still lack
a registration number go through a recovery path.
"""

import copy
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from core.config import get_config
from extractors.date_converter import convert_excel_date
from models.ingestion import FileType, FileTypeConfig, get_file_type_config
from schemas.column_aliases import BOOKING_REG_ALTERNATES, BOOKING_REG_HINTS, COLUMN_ALIASES

logger = logging.getLogger(__name__)

AliasTable = Dict[str, str]
MatchStrategy = Callable[[str, AliasTable], Optional[str]]

TRUTHY_FLAGS = {"Y", "YES", "1", "TRUE"}

_AMOUNT_RE = re.compile(r"-?\d+(?:\.\d+)?")
_REG_NUMBER_RE = re.compile(r"^[A-Z0-9]{6,}$", re.IGNORECASE)


# =============================================================================
# MATCHER STRATEGIES
# =============================================================================


def match_exact(header: str, aliases: AliasTable) -> Optional[str]:
    return aliases.get(header)


def match_trimmed(header: str, aliases: AliasTable) -> Optional[str]:
    return aliases.get(header.strip())


def match_case_insensitive(header: str, aliases: AliasTable) -> Optional[str]:
    wanted = header.strip().lower()
    for alias, canonical in aliases.items():
        if alias.strip().lower() == wanted:
            return canonical
    return None


DEFAULT_STRATEGIES: Tuple[MatchStrategy, ...] = (
    match_exact,
    match_trimmed,
    match_case_insensitive,
)


# =============================================================================
# VALUE COERCION
# =============================================================================


def coerce_flag(value: Any) -> Any:
    """Yes/no-like strings to bool; non-strings are left alone."""
    if isinstance(value, str):
        return value.strip().upper() in TRUTHY_FLAGS
    return value


def coerce_amount(value: Any) -> Any:
    """Strip currency noise and parse as float, defaulting to 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    # "Rs. 1,200.50" -> 1200.5; the currency dot must not become a decimal point
    match = _AMOUNT_RE.search(str(value).replace(",", ""))
    if not match:
        return 0
    return float(match.group())


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


# =============================================================================
# MAPPER
# =============================================================================


class ColumnMapper:
    """Maps raw rows to canonical rows using per-file-type alias tables.

    Built-in aliases come from schemas.column_aliases. An optional YAML file
    adds or overrides aliases, keyed by file type:

        booking_list:
          "Regn. No": reg_no
    """

    def __init__(
        self,
        aliases_path: Optional[str] = None,
        strategies: Iterable[MatchStrategy] = DEFAULT_STRATEGIES,
    ):
        self.aliases_path = aliases_path
        self.strategies: Tuple[MatchStrategy, ...] = tuple(strategies)
        self.aliases: Dict[str, AliasTable] = copy.deepcopy(COLUMN_ALIASES)
        self._load_overrides()

    def _load_overrides(self):
        """Merge alias overrides from YAML, if configured."""
        if not self.aliases_path:
            return
        path = Path(self.aliases_path)
        if not path.exists():
            logger.warning(f"Column alias file not found: {path}")
            return

        with open(path) as f:
            overrides = yaml.safe_load(f) or {}

        for file_type, table in overrides.items():
            if not isinstance(table, dict):
                logger.warning(f"Ignoring alias overrides for {file_type}: expected a mapping")
                continue
            self.aliases.setdefault(str(file_type), {}).update(
                {str(header): str(canonical) for header, canonical in table.items()}
            )
        logger.info(f"Loaded column alias overrides from {path}")

    def resolve_header(self, header: str, file_type: Any) -> str:
        """Canonical name for a raw header, or the header itself if unknown."""
        ft = get_file_type_config(file_type).file_type
        aliases = self.aliases.get(ft.value, {})
        for strategy in self.strategies:
            canonical = strategy(header, aliases)
            if canonical:
                return canonical
        return header

    def map_columns(self, row: Mapping[str, Any], file_type: Any) -> Dict[str, Any]:
        """Produce one canonical row. Pure: no I/O, no shared state mutation."""
        config = get_file_type_config(file_type)
        mapped: Dict[str, Any] = {}

        for header, value in row.items():
            key = self.resolve_header(str(header), config.file_type)
            mapped[key] = self._convert(key, value, config)

        if config.file_type == FileType.BOOKING_LIST and _is_blank(mapped.get("reg_no")):
            reg_no = recover_registration(row, mapped)
            if reg_no is not None:
                mapped["reg_no"] = reg_no

        return mapped

    def map_rows(self, rows: Iterable[Mapping[str, Any]], file_type: Any) -> List[Dict[str, Any]]:
        return [self.map_columns(row, file_type) for row in rows]

    @staticmethod
    def _convert(key: str, value: Any, config: FileTypeConfig) -> Any:
        if key in config.boolean_fields:
            return coerce_flag(value)
        if key in config.numeric_fields:
            return coerce_amount(value)
        if key in config.date_fields and not _is_blank(value):
            return convert_excel_date(value)
        return value


def recover_registration(raw_row: Mapping[str, Any], mapped: Mapping[str, Any]) -> Optional[Any]:
    """
    Find a registration number for a booking row that mapped without one.

    Tries the alternate header list, then any reg/vehicle/number-looking
    column holding a plausible plate, then the VIN. None if all fail.
    """
    for header in BOOKING_REG_ALTERNATES:
        value = raw_row.get(header)
        if not _is_blank(value):
            logger.debug(f"Recovered reg_no from {header!r}")
            return value

    for header, value in raw_row.items():
        lowered = str(header).lower()
        if not any(hint in lowered for hint in BOOKING_REG_HINTS) or _is_blank(value):
            continue
        compact = re.sub(r"\s+", "", str(value))
        if _REG_NUMBER_RE.match(compact):
            logger.debug(f"Recovered reg_no by pattern from {header!r}")
            return value

    vin = mapped.get("vin_number") or raw_row.get("VIN")
    if not _is_blank(vin):
        logger.debug("Using VIN as reg_no")
        return vin

    return None


# Default mapper, built lazily from config
_mapper: Optional[ColumnMapper] = None


def get_column_mapper() -> ColumnMapper:
    global _mapper
    if _mapper is None:
        _mapper = ColumnMapper(aliases_path=get_config().ingest.column_aliases_path)
    return _mapper


def reset_column_mapper() -> None:
    global _mapper
    _mapper = None


def map_columns(row: Mapping[str, Any], file_type: Any) -> Dict[str, Any]:
    """Map one raw row to canonical field names."""
    return get_column_mapper().map_columns(row, file_type)


def map_rows(rows: Iterable[Mapping[str, Any]], file_type: Any) -> List[Dict[str, Any]]:
    return get_column_mapper().map_rows(rows, file_type)
