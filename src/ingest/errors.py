"""Exceptions raised by the CSV ingestion pipeline and the record store."""
from typing import Sequence


class IngestError(Exception):
    """Base class for every ingestion failure."""


class FileError(IngestError):
    """The file as a whole cannot be ingested; nothing was parsed."""


class MissingColumnError(FileError):
    def __init__(self, field: str, accepted_names: Sequence[str]):
        self.field = field
        self.accepted_names = tuple(accepted_names)
        super().__init__(
            f"Required column not found: {field}. "
            f"Possible names: {', '.join(self.accepted_names)}"
        )


class MalformedHeaderError(FileError):
    def __init__(self, detail: str):
        super().__init__(f"Malformed header row: {detail}")


class InsufficientRowsError(FileError):
    def __init__(self) -> None:
        super().__init__("CSV file must contain a header row and at least one data row")


class RowError(IngestError):
    """A single data line was rejected; the rest of the file still runs."""

    def __init__(self, line_number: int, detail: str):
        self.line_number = line_number
        self.detail = detail
        super().__init__(f"Line {line_number}: {detail}")


class MalformedLineError(RowError):
    def __init__(self, line_number: int, detail: str):
        super().__init__(line_number, f"Malformed CSV line: {detail}")


class InsufficientFieldsError(RowError):
    def __init__(self, line_number: int, expected_minimum: int):
        self.expected_minimum = expected_minimum
        super().__init__(
            line_number, f"Not enough fields. Expected at least {expected_minimum} fields"
        )


FIELD_LABELS = {
    "name": "Video Name",
    "post_date": "Post Date",
    "creator_username": "Creator Username",
    "gmv": "GMV",
}


class EmptyRequiredFieldError(RowError):
    def __init__(self, line_number: int, field_name: str):
        self.field_name = field_name
        label = FIELD_LABELS.get(field_name, field_name)
        super().__init__(line_number, f"{label} cannot be empty")


class InvalidNumberError(RowError):
    def __init__(self, line_number: int, raw_value: str):
        self.raw_value = raw_value
        super().__init__(line_number, f"Invalid GMV value: {raw_value}")


class InvalidDateError(IngestError):
    """Raised by parse_date under the reject policy.

    parse_row re-raises it as a RowError carrying the line number.
    """

    def __init__(self, raw_value: str):
        self.raw_value = raw_value
        super().__init__(f"Invalid date: {raw_value}")


class StoreError(IngestError):
    """The record store reported a failure."""


class StoreQueryError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass
