"""Row parsing: turn one CSV data line into a validated ParsedRow."""
import logging
import math
import re
from datetime import datetime, timezone

from src.ingest.columns import split_fields
from src.ingest.errors import (
    EmptyRequiredFieldError,
    InsufficientFieldsError,
    InvalidDateError,
    InvalidNumberError,
    RowError,
)
from src.ingest.models import ColumnMap, DatePolicy, ParsedRow

logger = logging.getLogger(__name__)

NON_NUMERIC_RE = re.compile(r"[^0-9.\-]+")
# Leading float literal, the part a lenient float parse would consume
FLOAT_PREFIX_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

# Tried in order after ISO 8601
DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)

REQUIRED_FIELDS = ("post_date", "creator_username", "gmv")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """UTC ISO 8601 with millisecond precision, e.g. 2024-01-05T00:00:00.000Z.

    Raises OverflowError when the UTC value falls outside the calendar.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def _read_calendar_date(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: str, policy: DatePolicy = DatePolicy.FALLBACK_NOW) -> str:
    """Normalize a free-form date string to a UTC ISO timestamp.

    Naive values are read as UTC. When the value cannot be read, or has no
    UTC equivalent, the FALLBACK_NOW policy substitutes the current time and
    REJECT raises InvalidDateError.
    """
    parsed = _read_calendar_date(value.strip())
    if parsed is not None:
        try:
            return format_timestamp(parsed)
        except (OverflowError, ValueError):
            logger.debug(f"Date {value!r} is out of range in UTC")

    if policy == DatePolicy.REJECT:
        raise InvalidDateError(value)
    logger.warning(f"Error parsing date {value!r}, using current time")
    return format_timestamp(_utcnow())


def parse_gmv(raw: str, line_number: int) -> float:
    """Parse a money amount, ignoring currency symbols and separators."""
    cleaned = NON_NUMERIC_RE.sub("", raw)
    match = FLOAT_PREFIX_RE.match(cleaned)
    if not match:
        raise InvalidNumberError(line_number, raw)
    value = float(match.group(0))
    if not math.isfinite(value):
        raise InvalidNumberError(line_number, raw)
    return value


def normalize_username(raw: str) -> str:
    """Drop a single leading @ from a creator handle."""
    return raw[1:] if raw.startswith("@") else raw


def parse_row(
    line: str,
    line_number: int,
    column_map: ColumnMap,
    date_policy: DatePolicy = DatePolicy.FALLBACK_NOW,
) -> ParsedRow:
    """Parse one data line.

    Raises a RowError subclass describing the first problem found.
    """
    fields = split_fields(line, line_number)
    if len(fields) < column_map.min_fields:
        raise InsufficientFieldsError(line_number, column_map.min_fields)

    name = fields[column_map.name] or None
    values = {field: fields[getattr(column_map, field)] for field in REQUIRED_FIELDS}
    for field in REQUIRED_FIELDS:
        if not values[field]:
            raise EmptyRequiredFieldError(line_number, field)

    gmv = parse_gmv(values["gmv"], line_number)

    try:
        post_date = parse_date(values["post_date"], date_policy)
    except InvalidDateError as e:
        raise RowError(line_number, str(e)) from e

    return ParsedRow(
        name=name,
        post_date=post_date,
        creator_username=normalize_username(values["creator_username"]),
        gmv=gmv,
    )
