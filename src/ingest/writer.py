"""Persist newly ingested rows."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from src.ingest.models import ParsedRow, VideoStatus, WriteResult
from src.ingest.rows import format_timestamp
from src.store.video_store import VideoStore

logger = logging.getLogger(__name__)


class BatchWriter:
    """Writes rows already classified as new in one bulk upsert."""

    def __init__(self, store: VideoStore):
        self.store = store

    async def write(self, new_rows: list[ParsedRow], owner_id: str) -> WriteResult:
        if not new_rows:
            return WriteResult(inserted_count=0)

        created_at = format_timestamp(datetime.now(timezone.utc))
        data = [self._row_to_dict(row, owner_id, created_at) for row in new_rows]
        # StoreWriteError propagates; which rows the backend kept is unknown
        await self.store.insert_videos(data)
        logger.info(f"Inserted {len(data)} new videos for owner {owner_id}")
        return WriteResult(inserted_count=len(data))

    def _row_to_dict(self, row: ParsedRow, owner_id: str, created_at: str) -> dict[str, Any]:
        """Convert ParsedRow to a videos table row."""
        return {
            "id": str(uuid.uuid4()),
            "user_id": owner_id,
            "video_id": "",
            "name": row.name,
            "post_date": row.post_date,
            "creator_username": row.creator_username,
            "gmv": row.gmv,
            "spark_code": "",
            "status": VideoStatus.PENDING.value,
            "tags": [],
            "created_at": created_at,
        }
