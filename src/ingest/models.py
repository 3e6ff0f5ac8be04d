"""Data models for video records and ingestion results."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class VideoStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


class DatePolicy(str, Enum):
    """What parse_date does with a value it cannot read."""

    FALLBACK_NOW = "fallback_now"
    REJECT = "reject"


class ColumnMap(BaseModel):
    """Zero-based header positions of the four logical fields."""

    name: int
    post_date: int
    creator_username: int
    gmv: int

    @property
    def min_fields(self) -> int:
        return max(self.name, self.post_date, self.creator_username, self.gmv) + 1


class ParsedRow(BaseModel):
    """One validated data line, not yet persisted."""

    name: Optional[str] = None
    post_date: str = Field(..., description="UTC ISO 8601 timestamp")
    creator_username: str
    gmv: float

    @property
    def identity(self) -> tuple[Optional[str], str, str]:
        return (self.name, self.post_date, self.creator_username)


class ClassificationResult(BaseModel):
    duplicates: list[ParsedRow] = Field(default_factory=list)
    new_rows: list[ParsedRow] = Field(default_factory=list)


class WriteResult(BaseModel):
    inserted_count: int = 0


class UploadSummary(BaseModel):
    """Counts reported back to whoever uploaded the file."""

    model_config = ConfigDict(populate_by_name=True)

    new_entries: int = Field(0, alias="newEntries")
    duplicates: int = 0
    errors: int = 0
    total: int = 0
    error_messages: list[str] = Field(default_factory=list, alias="errorMessages")


class VideoRecord(BaseModel):
    """A stored video row as the rest of the application sees it."""

    id: str
    video_id: str = ""
    name: Optional[str] = None
    post_date: str
    creator_username: str
    gmv: float
    status: VideoStatus = VideoStatus.PENDING
    spark_code: str = ""
    date_added: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "VideoRecord":
        """Build from a `videos` table row."""
        return cls(
            id=row["id"],
            video_id=row.get("video_id") or "",
            name=row.get("name"),
            post_date=row["post_date"],
            creator_username=row["creator_username"],
            gmv=row["gmv"],
            status=row.get("status") or VideoStatus.PENDING,
            spark_code=row.get("spark_code") or "",
            date_added=row["created_at"],
            tags=row.get("tags") or [],
        )


class VideoUpdate(BaseModel):
    """Combined edit of a stored video."""

    video_id: Optional[str] = None
    spark_code: Optional[str] = None
    status: Optional[VideoStatus] = None
