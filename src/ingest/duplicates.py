"""Duplicate detection against the owner's stored videos."""
import logging

from src.ingest.models import ClassificationResult, ParsedRow
from src.store.video_store import VideoStore

logger = logging.getLogger(__name__)


class DuplicateChecker:
    """Splits parsed rows into new rows and rows the owner already has."""

    def __init__(self, store: VideoStore):
        self.store = store

    async def classify(self, rows: list[ParsedRow], owner_id: str) -> ClassificationResult:
        """Query the store once per row, keeping input order in both lists.

        A row repeating an identity already accepted as new earlier in the
        same batch is a duplicate as well. StoreQueryError propagates and
        no partial result is returned.
        """
        result = ClassificationResult()
        seen: set[tuple] = set()

        for row in rows:
            if row.identity in seen:
                result.duplicates.append(row)
                continue
            matches = await self.store.find_matching(
                owner_id, row.name, row.post_date, row.creator_username
            )
            if matches:
                result.duplicates.append(row)
            else:
                seen.add(row.identity)
                result.new_rows.append(row)

        logger.info(
            f"Classified {len(rows)} rows for owner {owner_id}: "
            f"{len(result.new_rows)} new, {len(result.duplicates)} duplicates"
        )
        return result
