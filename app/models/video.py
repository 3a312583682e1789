"""
Video Models

Video items as they travel through the feed, plus the enums shared by the
feed player and the feedback endpoints.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class FeedbackKind(str, Enum):
    """Engagement signals sent to the recommender."""
    STARTED = "started"
    FINISHED = "finished"
    LIKED = "liked"

    @property
    def gorse_type(self) -> str:
        """Feedback type name registered in Gorse."""
        return _GORSE_FEEDBACK_TYPES[self]


_GORSE_FEEDBACK_TYPES = {
    FeedbackKind.STARTED: "read",
    FeedbackKind.FINISHED: "read_all",
    FeedbackKind.LIKED: "like",
}


class LifecycleState(str, Enum):
    """Render state of a video in the feed window."""
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"
    ACTIVE = "active"


class VideoItem(BaseModel):
    """
    A single video in the feed.

    Frozen: the feed never mutates an item after it has been inserted.
    """
    id: str = Field(..., description="Opaque video ID")
    title: str = Field(..., description="Display title")
    url: str = Field(..., description="Media URL")
    cover_url: Optional[str] = Field(None, alias="coverUrl")
    description: Optional[str] = None
    author_id: Optional[str] = Field(None, alias="authorId")
    views: int = 0

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class FeedPage(BaseModel):
    """One page from the recommendation endpoint."""
    videos: List[VideoItem] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(None, alias="nextCursor")

    model_config = ConfigDict(populate_by_name=True)


class LikeRequest(BaseModel):
    """Body of the like/unlike endpoint."""
    like: bool


class CreateVideoRequest(BaseModel):
    """Register an uploaded video (object keys come from upload tickets)."""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=1000)
    cover_file_key: str = Field(..., min_length=1, alias="coverFileKey")
    video_file_key: str = Field(..., min_length=1, alias="videoFileKey")
    tags: List[str] = Field(default_factory=list)
    category: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)
