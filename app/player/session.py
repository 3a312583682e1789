"""
Feed Session

Wires a FeedWindowController, PlaybackOrchestrator and feedback sink for
one visit to the feed page.
"""

from typing import Optional

from ..config import Settings
from ..core.logging import get_logger
from ..models.video import VideoItem
from .api_client import FeedApiClient, HttpFeedbackSink
from .capabilities import FeedSource, FeedbackSink, MediaElementFactory, VisibilityObserver
from .playback import PlaybackOrchestrator
from .window import FeedWindowController

logger = get_logger(__name__)


class FeedSession:
    """One mounted feed: build on enter, ``close()`` on navigation away."""

    def __init__(
        self,
        source: FeedSource,
        sink: FeedbackSink,
        observer: VisibilityObserver,
        element_factory: MediaElementFactory,
        settings: Settings,
        seed: Optional[VideoItem] = None,
    ):
        self.sink = sink
        self.controller = FeedWindowController(
            source,
            observer,
            page_size=settings.feed_page_size,
            visibility_threshold=settings.visibility_threshold,
            seed=seed,
        )
        self.orchestrator = PlaybackOrchestrator(
            self.controller,
            element_factory,
            sink,
            started_after=settings.view_started_seconds,
            finished_ratio=settings.view_finished_ratio,
        )

    @classmethod
    def connect(
        cls,
        settings: Settings,
        observer: VisibilityObserver,
        element_factory: MediaElementFactory,
        token: Optional[str] = None,
        seed: Optional[VideoItem] = None,
    ) -> "FeedSession":
        """Session backed by the HTTP API at ``settings.api_base_url``."""
        return cls(
            FeedApiClient.from_settings(settings, token=token),
            HttpFeedbackSink(settings.api_base_url, token=token),
            observer,
            element_factory,
            settings,
            seed=seed,
        )

    async def start(self):
        """Load the first page and wait for it to merge."""
        task = self.controller.start()
        if task is not None:
            await task
        logger.info("feed_session_started", videos=len(self.controller.videos))

    async def close(self):
        """Tear down observation and elements, flush pending feedback."""
        self.controller.dispose()
        self.orchestrator.dispose()
        drain = getattr(self.sink, "drain", None)
        if drain is not None:
            await drain()
        logger.info("feed_session_closed")
