"""Supabase access for the `videos` table."""
import asyncio
import logging
from functools import partial
from typing import Any, Callable, Optional
from supabase import create_client, Client
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from src.config import config
from src.ingest.errors import StoreQueryError, StoreWriteError

logger = logging.getLogger(__name__)


class VideoStore:
    """Owner-scoped reads and writes against the videos table.

    The Supabase client is synchronous, so every call runs in the default
    thread pool. Failures are logged and re-raised as StoreQueryError or
    StoreWriteError; nothing here retries except the startup connection probe.
    """

    def __init__(self, client: Client, table: str = "videos"):
        self.client = client
        self.table = table

    @classmethod
    def from_config(cls) -> "VideoStore":
        if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE:
            raise ValueError("Supabase configuration missing")
        client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)
        return cls(client, config.SUPABASE_TABLE)

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def _query(self, description: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await self._run(func, *args)
        except Exception as e:
            logger.error(f"Supabase {description} error: {e}")
            raise StoreQueryError(f"Failed to {description}: {e}") from e

    async def _write(self, description: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await self._run(func, *args)
        except Exception as e:
            logger.error(f"Supabase {description} error: {e}")
            raise StoreWriteError(f"Failed to {description}: {e}") from e

    async def find_matching(
        self,
        owner_id: str,
        name: Optional[str],
        post_date: str,
        creator_username: str,
    ) -> list[str]:
        """Ids of the owner's records with exactly this identity triple."""
        return await self._query(
            "check for duplicates",
            self._find_matching_sync,
            owner_id,
            name,
            post_date,
            creator_username,
        )

    def _find_matching_sync(
        self,
        owner_id: str,
        name: Optional[str],
        post_date: str,
        creator_username: str,
    ) -> list[str]:
        query = self.client.table(self.table).select("id").eq("user_id", owner_id)
        if name is None:
            query = query.is_("name", "null")
        else:
            query = query.eq("name", name)
        response = (
            query.eq("post_date", post_date)
            .eq("creator_username", creator_username)
            .execute()
        )
        return [row["id"] for row in response.data or []]

    async def insert_videos(self, rows: list[dict[str, Any]]) -> None:
        """Bulk upsert of fully-formed table rows."""
        if not rows:
            return
        await self._write("save videos", self._insert_sync, rows)
        logger.info(f"Upserted {len(rows)} videos to Supabase")

    def _insert_sync(self, rows: list[dict[str, Any]]) -> None:
        self.client.table(self.table).upsert(rows).execute()

    async def list_videos(self, owner_id: str) -> list[dict[str, Any]]:
        """All of the owner's rows, newest first."""
        return await self._query("load videos", self._list_sync, owner_id)

    def _list_sync(self, owner_id: str) -> list[dict[str, Any]]:
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    async def update_video(
        self, owner_id: str, video_id: str, fields: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Update one row; returns the updated rows (empty if none matched)."""
        return await self._write("update video", self._update_sync, owner_id, video_id, fields)

    def _update_sync(
        self, owner_id: str, video_id: str, fields: dict[str, Any]
    ) -> list[dict[str, Any]]:
        response = (
            self.client.table(self.table)
            .update(fields)
            .eq("id", video_id)
            .eq("user_id", owner_id)
            .execute()
        )
        return response.data or []

    async def delete_all(self, owner_id: str) -> None:
        await self._write("delete videos", self._delete_all_sync, owner_id)
        logger.info(f"Deleted all videos for owner {owner_id}")

    def _delete_all_sync(self, owner_id: str) -> None:
        self.client.table(self.table).delete().eq("user_id", owner_id).execute()

    async def test_connection(self, retry_on_failure: bool = False) -> bool:
        """Test Supabase connection.

        Only startup asks for retries; health checks answer right away.
        """
        probe = self._probe_with_retry_sync if retry_on_failure else self._probe_sync
        try:
            await self._run(probe)
            logger.info("Supabase connection successful")
            return True
        except Exception as e:
            logger.error(f"Supabase connection test failed: {e}")
            return False

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((Exception,)),
    )
    def _probe_with_retry_sync(self) -> None:
        self._probe_sync()

    def _probe_sync(self) -> None:
        (
            self.client.table(self.table)
            .select("id", count="exact")
            .limit(1)
            .execute()
        )
