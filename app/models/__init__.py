"""Pydantic models for the Volo feed."""

from .video import FeedbackKind, LifecycleState, VideoItem, FeedPage
from .upload import UploadCategory, UploadTicket
from .response import FeedResponse, FeedMeta, FeedbackEvent, FeedbackBatch

__all__ = [
    "FeedbackKind",
    "LifecycleState",
    "VideoItem",
    "FeedPage",
    "UploadCategory",
    "UploadTicket",
    "FeedResponse",
    "FeedMeta",
    "FeedbackEvent",
    "FeedbackBatch",
]
