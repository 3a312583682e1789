"""
API Response Models

Standardized response structures for feed and analytics endpoints.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .video import FeedbackKind, VideoItem


class FeedMeta(BaseModel):
    """Metadata about the feed response."""
    limit: int = 5
    item_count: int = Field(alias="itemCount")
    has_more: bool = Field(alias="hasMore")
    generated_at: datetime = Field(
        default_factory=datetime.utcnow,
        alias="generatedAt"
    )
    latency_ms: int = Field(default=0, alias="latencyMs")

    model_config = ConfigDict(populate_by_name=True)


class FeedResponse(BaseModel):
    """
    Recommendation page.

    ``videos`` and ``nextCursor`` are what the feed player consumes; ``meta``
    is informational.
    """
    videos: List[VideoItem] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(None, alias="nextCursor")
    meta: FeedMeta

    model_config = ConfigDict(populate_by_name=True)


class FeedbackEvent(BaseModel):
    """Single engagement event from a client."""
    kind: FeedbackKind
    video_id: str = Field(alias="videoId")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(populate_by_name=True)


class FeedbackBatch(BaseModel):
    """Batch of engagement events."""
    events: List[FeedbackEvent]
    session_id: Optional[str] = Field(None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: bool = True
    message: str
    status_code: int = Field(alias="statusCode")

    model_config = ConfigDict(populate_by_name=True)
