"""
View-Progress Tracker

Watches one playback session of the active video and reports how far the
viewer got. Two events per session, each at most once:

- STARTED once at least ``started_after`` seconds have played
- FINISHED once ``finished_ratio`` of the duration has played

Both need a known duration. FINISHED is only considered after STARTED has
fired, so the two are always emitted in that order (a clip shorter than
``started_after`` emits neither).
"""

import math
from enum import Enum
from typing import Optional

from ..core.logging import get_logger
from ..models.video import FeedbackKind
from .capabilities import FeedbackSink, MediaElement, Unsubscribe

logger = get_logger(__name__)


class ViewState(str, Enum):
    NOT_STARTED = "not_started"
    STARTED_SENT = "started_sent"
    FINISHED_SENT = "finished_sent"


def _known(duration: Optional[float]) -> bool:
    return duration is not None and math.isfinite(duration) and duration > 0


class ViewProgressTracker:
    """
    One session's progress latch.

    A new tracker is created every time a video becomes active, so a replay
    of the same video starts again from NOT_STARTED.
    """

    def __init__(
        self,
        video_id: str,
        sink: FeedbackSink,
        started_after: float = 1.0,
        finished_ratio: float = 0.67,
    ):
        self.video_id = video_id
        self.sink = sink
        self.started_after = started_after
        self.finished_ratio = finished_ratio

        self.state = ViewState.NOT_STARTED
        self.progress: float = 0.0
        self.duration: Optional[float] = None
        self._unsubscribers: list[Unsubscribe] = []
        self._detached = False

    @property
    def started_sent(self) -> bool:
        return self.state is not ViewState.NOT_STARTED

    @property
    def finished_sent(self) -> bool:
        return self.state is ViewState.FINISHED_SENT

    @property
    def played_fraction(self) -> float:
        """0..1, for a progress bar."""
        if not _known(self.duration):
            return 0.0
        return min(self.progress / self.duration, 1.0)

    def attach(self, element: MediaElement):
        """Subscribe to the element's playback signals."""
        self._unsubscribers.append(element.on_loaded_metadata(self.on_loaded_metadata))
        self._unsubscribers.append(element.on_time_update(self.on_time_update))

        # Metadata may have loaded before we subscribed
        if _known(element.duration):
            self.duration = element.duration

    def detach(self):
        """Stop listening. Ticks delivered afterwards are ignored."""
        self._detached = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def on_loaded_metadata(self, duration: Optional[float]):
        if self._detached:
            return
        if _known(duration):
            self.duration = duration

    def on_time_update(self, elapsed: float, duration: Optional[float] = None):
        """Sample progress and fire whichever latches the sample crosses."""
        if self._detached:
            return

        self.progress = elapsed
        if _known(duration):
            self.duration = duration
        if not _known(self.duration):
            return

        if self.state is ViewState.NOT_STARTED and elapsed >= self.started_after:
            self.state = ViewState.STARTED_SENT
            self._emit(FeedbackKind.STARTED)

        if (
            self.state is ViewState.STARTED_SENT
            and elapsed >= self.duration * self.finished_ratio
        ):
            self.state = ViewState.FINISHED_SENT
            self._emit(FeedbackKind.FINISHED)

    def _emit(self, kind: FeedbackKind):
        logger.debug("view_feedback", video_id=self.video_id, kind=kind.value, progress=self.progress)
        self.sink.emit(self.video_id, kind)
