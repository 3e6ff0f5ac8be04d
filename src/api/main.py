"""FastAPI main application."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, Request, UploadFile
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from src.config import config, Config
from src.ingest.errors import FileError, StoreError
from src.ingest.models import DatePolicy, UploadSummary, VideoRecord, VideoStatus, VideoUpdate
from src.ingest.pipeline import IngestPipeline
from src.store.video_store import VideoStore
from src.videos.service import VideoService

logger = logging.getLogger(__name__)

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)


def verify_api_key(api_key: str = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    expected_key = config.API_KEY
    if expected_key:
        if not api_key or api_key != expected_key:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


def owner_id(x_owner_id: str = Header(...)) -> str:
    """Owner scope of the request, supplied by the fronting auth layer."""
    if not x_owner_id.strip():
        raise HTTPException(status_code=400, detail="X-Owner-Id header is empty")
    return x_owner_id.strip()


def get_store(request: Request) -> VideoStore:
    return request.app.state.store


def get_service(store: VideoStore = Depends(get_store)) -> VideoService:
    return VideoService(store)


class StatusRequest(BaseModel):
    status: VideoStatus


class SparkCodeRequest(BaseModel):
    spark_code: str


class DeleteResponse(BaseModel):
    deleted: bool


def create_app(store: Optional[VideoStore] = None) -> FastAPI:
    """Build the API; the store is created from config at startup unless given."""
    app = FastAPI(title="Spark Code Tracker API", version="0.1.0")
    app.state.store = store

    @app.on_event("startup")
    async def startup():
        """Initialize on startup."""
        if app.state.store is None:
            Config.validate()
            app.state.store = VideoStore.from_config()
        if not await app.state.store.test_connection(retry_on_failure=True):
            logger.warning("Supabase connection test failed, but continuing...")

    @app.get("/health")
    async def health():
        """Health check endpoint (no auth required)."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "supabase_connected": await app.state.store.test_connection(),
        }

    @app.post("/videos/upload", response_model=UploadSummary, response_model_by_alias=True)
    async def upload_videos(
        file: UploadFile = File(...),
        owner: str = Depends(owner_id),
        store: VideoStore = Depends(get_store),
        _: bool = Depends(verify_api_key),
    ):
        """Ingest an uploaded CSV for the owner and return the upload summary."""
        content = await file.read(config.MAX_UPLOAD_BYTES + 1)
        if len(content) > config.MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="Uploaded file is too large")
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=422, detail="Uploaded file is not UTF-8 text")

        pipeline = IngestPipeline(store, DatePolicy(config.DATE_POLICY))
        try:
            summary = await pipeline.ingest(text, owner)
        except FileError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except StoreError as e:
            raise HTTPException(status_code=502, detail=str(e))

        logger.info(
            f"Upload {file.filename!r} for owner {owner}: "
            f"{summary.new_entries} new, {summary.duplicates} duplicates, {summary.errors} errors"
        )
        return summary

    @app.get("/videos", response_model=list[VideoRecord])
    async def list_videos(
        owner: str = Depends(owner_id),
        service: VideoService = Depends(get_service),
        _: bool = Depends(verify_api_key),
    ):
        """List the owner's videos, newest first."""
        try:
            return await service.list_videos(owner)
        except StoreError as e:
            raise HTTPException(status_code=502, detail=str(e))

    @app.patch("/videos/{video_id}/status", response_model=VideoRecord)
    async def update_status(
        video_id: str,
        request: StatusRequest,
        owner: str = Depends(owner_id),
        service: VideoService = Depends(get_service),
        _: bool = Depends(verify_api_key),
    ):
        try:
            record = await service.set_status(owner, video_id, request.status)
        except StoreError as e:
            raise HTTPException(status_code=502, detail=str(e))
        if record is None:
            raise HTTPException(status_code=404, detail="Video not found")
        return record

    @app.patch("/videos/{video_id}/spark-code", response_model=VideoRecord)
    async def update_spark_code(
        video_id: str,
        request: SparkCodeRequest,
        owner: str = Depends(owner_id),
        service: VideoService = Depends(get_service),
        _: bool = Depends(verify_api_key),
    ):
        try:
            record = await service.set_spark_code(owner, video_id, request.spark_code)
        except StoreError as e:
            raise HTTPException(status_code=502, detail=str(e))
        if record is None:
            raise HTTPException(status_code=404, detail="Video not found")
        return record

    @app.patch("/videos/{video_id}", response_model=VideoRecord)
    async def save_video(
        video_id: str,
        update: VideoUpdate,
        owner: str = Depends(owner_id),
        service: VideoService = Depends(get_service),
        _: bool = Depends(verify_api_key),
    ):
        """Combined edit; a non-empty spark code authorizes the video."""
        try:
            record = await service.save_video(owner, video_id, update)
        except StoreError as e:
            raise HTTPException(status_code=502, detail=str(e))
        if record is None:
            raise HTTPException(status_code=404, detail="Video not found")
        return record

    @app.delete("/videos", response_model=DeleteResponse)
    async def delete_videos(
        owner: str = Depends(owner_id),
        service: VideoService = Depends(get_service),
        _: bool = Depends(verify_api_key),
    ):
        try:
            await service.delete_all(owner)
        except StoreError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return DeleteResponse(deleted=True)

    return app


if __name__ == "__main__":
    import uvicorn
    from src.logging_conf import setup_logging

    setup_logging()
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
