"""
Player Capabilities

Interfaces the feed player needs from its environment. A real renderer
supplies media elements and a viewport observer; tests supply fakes.
"""

from typing import Callable, NamedTuple, Optional, Protocol

from ..models.video import FeedbackKind, FeedPage, VideoItem

Unsubscribe = Callable[[], None]
TimeUpdateCallback = Callable[[float, Optional[float]], None]
MetadataCallback = Callable[[Optional[float]], None]


class VisibilityEntry(NamedTuple):
    """One viewport observation: how much of a video's node is visible."""
    video_id: str
    intersection_ratio: float


class MediaElement(Protocol):
    """A playable video surface."""

    muted: bool

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> Optional[float]:
        """Seconds, or None/NaN until metadata has loaded."""
        ...

    @property
    def paused(self) -> bool: ...

    async def play(self) -> None:
        """Start playback. May raise (autoplay policy, decode errors)."""
        ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def on_time_update(self, callback: TimeUpdateCallback) -> Unsubscribe:
        """Called with (elapsed, duration) on every playback tick."""
        ...

    def on_loaded_metadata(self, callback: MetadataCallback) -> Unsubscribe:
        """Called with the duration once it is known."""
        ...

    def release(self) -> None:
        """Tear down the element and its decoder."""
        ...


MediaElementFactory = Callable[[VideoItem], MediaElement]


class VisibilityObserver(Protocol):
    """Viewport observation keyed by video id."""

    def observe(self, video_id: str) -> None: ...

    def disconnect(self) -> None: ...


class FeedSource(Protocol):
    """Paginated recommendation source."""

    async def fetch_page(self, cursor: Optional[str] = None) -> FeedPage: ...


class FeedbackSink(Protocol):
    """Fire-and-forget receiver of engagement events."""

    def emit(self, video_id: str, kind: FeedbackKind) -> None: ...
