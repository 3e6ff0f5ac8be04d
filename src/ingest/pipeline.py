"""CSV ingestion pipeline: resolve, parse, classify, write, summarize."""
import logging
from dataclasses import dataclass, field

from src.ingest.columns import resolve_columns
from src.ingest.duplicates import DuplicateChecker
from src.ingest.errors import InsufficientRowsError, RowError
from src.ingest.models import DatePolicy, ParsedRow, UploadSummary
from src.ingest.rows import parse_row
from src.ingest.writer import BatchWriter
from src.store.video_store import VideoStore

logger = logging.getLogger(__name__)


@dataclass
class ParseOutcome:
    """Rows that parsed plus the messages of the ones that did not."""

    rows: list[ParsedRow] = field(default_factory=list)
    error_messages: list[str] = field(default_factory=list)
    total: int = 0


def split_lines(text: str) -> list[str]:
    """Trimmed, non-blank lines of an uploaded file.

    Only newline separates lines; the trailing carriage return of CRLF
    files is removed by the trim.
    """
    text = text.lstrip("\ufeff")
    return [line.strip() for line in text.split("\n") if line.strip()]


def parse_text(text: str, date_policy: DatePolicy = DatePolicy.FALLBACK_NOW) -> ParseOutcome:
    """Resolve the header and parse every data line.

    File-level errors (InsufficientRowsError, MissingColumnError) propagate;
    row errors are collected and parsing continues.
    """
    lines = split_lines(text)
    if len(lines) < 2:
        raise InsufficientRowsError()

    column_map = resolve_columns(lines[0])
    outcome = ParseOutcome(total=len(lines) - 1)

    for index, line in enumerate(lines[1:], start=2):
        try:
            outcome.rows.append(parse_row(line, index, column_map, date_policy))
        except RowError as e:
            logger.debug(f"Rejected line {index}: {e.detail}")
            outcome.error_messages.append(str(e))

    return outcome


class IngestPipeline:
    """Runs one uploaded file through the whole pipeline for one owner."""

    def __init__(self, store: VideoStore, date_policy: DatePolicy = DatePolicy.FALLBACK_NOW):
        self.store = store
        self.date_policy = date_policy
        self.checker = DuplicateChecker(store)
        self.writer = BatchWriter(store)

    def parse_only(self, text: str) -> UploadSummary:
        """Dry run: parse without touching the store."""
        outcome = parse_text(text, self.date_policy)
        return UploadSummary(
            new_entries=len(outcome.rows),
            duplicates=0,
            errors=len(outcome.error_messages),
            total=outcome.total,
            error_messages=outcome.error_messages,
        )

    async def ingest(self, text: str, owner_id: str) -> UploadSummary:
        """Ingest a CSV document for an owner.

        StoreQueryError and StoreWriteError abort the whole upload; no
        summary is produced in that case.
        """
        outcome = parse_text(text, self.date_policy)
        logger.info(
            f"Parsed upload for owner {owner_id}: {len(outcome.rows)}/{outcome.total} "
            f"rows valid, {len(outcome.error_messages)} errors"
        )

        classification = await self.checker.classify(outcome.rows, owner_id)
        written = await self.writer.write(classification.new_rows, owner_id)

        return UploadSummary(
            new_entries=written.inserted_count,
            duplicates=len(classification.duplicates),
            errors=len(outcome.error_messages),
            total=outcome.total,
            error_messages=outcome.error_messages,
        )
