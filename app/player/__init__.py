"""Feed player: windowing, playback and view feedback."""

from .capabilities import (
    FeedSource,
    FeedbackSink,
    MediaElement,
    MediaElementFactory,
    VisibilityEntry,
    VisibilityObserver,
)
from .window import FeedWindowController
from .playback import PlaybackOrchestrator
from .progress import ViewProgressTracker, ViewState
from .api_client import FeedApiClient, HttpFeedbackSink, ObjectUploader
from .session import FeedSession

__all__ = [
    "FeedSource",
    "FeedbackSink",
    "MediaElement",
    "MediaElementFactory",
    "VisibilityEntry",
    "VisibilityObserver",
    "FeedWindowController",
    "PlaybackOrchestrator",
    "ViewProgressTracker",
    "ViewState",
    "FeedApiClient",
    "HttpFeedbackSink",
    "ObjectUploader",
    "FeedSession",
]
