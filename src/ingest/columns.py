"""Header resolution: map CSV column labels to the logical video fields."""
import csv
import logging

from src.ingest.errors import MalformedHeaderError, MalformedLineError, MissingColumnError
from src.ingest.models import ColumnMap

logger = logging.getLogger(__name__)

# Declaration order is the order missing columns are reported in
COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "name": ("video name", "name", "title"),
    "post_date": ("video post date", "post date", "date", "posted", "post_date"),
    "creator_username": ("creator username", "creator", "username", "creator_username"),
    "gmv": ("gmv", "revenue", "earnings"),
}


def _read_fields(line: str) -> list[str]:
    reader = csv.reader([line], skipinitialspace=True)
    return [field.strip() for field in next(reader, [])]


def split_fields(line: str, line_number: int) -> list[str]:
    """Split one CSV data line into trimmed fields.

    Quoted fields may contain commas; an unquoted line splits exactly like
    a plain comma split. Lines the csv reader refuses (oversized fields)
    raise MalformedLineError.
    """
    try:
        return _read_fields(line)
    except csv.Error as e:
        raise MalformedLineError(line_number, str(e)) from e


def resolve_columns(header_line: str) -> ColumnMap:
    """Find the position of every required field in the header row."""
    try:
        headers = [h.lower() for h in _read_fields(header_line)]
    except csv.Error as e:
        raise MalformedHeaderError(str(e)) from e
    positions: dict[str, int] = {}

    for field, accepted in COLUMN_SYNONYMS.items():
        index = next((i for i, h in enumerate(headers) if h in accepted), None)
        if index is None:
            logger.debug(f"Header {headers} has no column for {field}")
            raise MissingColumnError(field, accepted)
        positions[field] = index

    return ColumnMap(**positions)
