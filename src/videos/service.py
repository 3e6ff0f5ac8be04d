"""Read, edit and clear an owner's stored videos."""
import logging
from typing import Any, Optional

from src.ingest.models import VideoRecord, VideoStatus, VideoUpdate
from src.store.video_store import VideoStore

logger = logging.getLogger(__name__)


class VideoService:
    """Update paths for stored videos, all scoped to one owner."""

    def __init__(self, store: VideoStore):
        self.store = store

    async def list_videos(self, owner_id: str) -> list[VideoRecord]:
        rows = await self.store.list_videos(owner_id)
        return [VideoRecord.from_row(row) for row in rows]

    async def _update(
        self, owner_id: str, video_id: str, fields: dict[str, Any]
    ) -> Optional[VideoRecord]:
        rows = await self.store.update_video(owner_id, video_id, fields)
        if not rows:
            logger.warning(f"No video {video_id} for owner {owner_id}")
            return None
        logger.info(f"Updated video {video_id}: {sorted(fields)}")
        return VideoRecord.from_row(rows[0])

    async def set_status(
        self, owner_id: str, video_id: str, status: VideoStatus
    ) -> Optional[VideoRecord]:
        return await self._update(owner_id, video_id, {"status": VideoStatus(status).value})

    async def set_spark_code(
        self, owner_id: str, video_id: str, spark_code: str
    ) -> Optional[VideoRecord]:
        """Store a spark code as-is; the status is left alone on this path."""
        return await self._update(owner_id, video_id, {"spark_code": spark_code})

    async def save_video(
        self, owner_id: str, video_id: str, update: VideoUpdate
    ) -> Optional[VideoRecord]:
        """Combined edit of video id, spark code and status.

        Empty values are not written. The spark code is stripped; a written
        spark code always sets the status to authorized, whatever status
        was requested.
        """
        fields: dict[str, Any] = {}
        spark_code = (update.spark_code or "").strip()
        if update.video_id:
            fields["video_id"] = update.video_id
        if update.status:
            fields["status"] = VideoStatus(update.status).value
        if spark_code:
            fields["spark_code"] = spark_code
            fields["status"] = VideoStatus.AUTHORIZED.value

        if not fields:
            logger.debug(f"Nothing to save for video {video_id}")
            rows = await self.store.list_videos(owner_id)
            current = next((row for row in rows if row["id"] == video_id), None)
            return VideoRecord.from_row(current) if current else None

        return await self._update(owner_id, video_id, fields)

    async def delete_all(self, owner_id: str) -> None:
        await self.store.delete_all(owner_id)
