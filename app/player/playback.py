"""
Playback Orchestrator

Keeps exactly one video playing: the active one. Reacts to lifecycle
changes from the FeedWindowController by creating, pausing, restarting and
releasing media elements, and gives every activation a fresh
ViewProgressTracker session.
"""

import asyncio
from typing import Dict, Optional

from ..core.logging import get_logger
from ..models.video import LifecycleState
from .capabilities import FeedbackSink, MediaElement, MediaElementFactory
from .progress import ViewProgressTracker
from .window import FeedWindowController, StateMap

logger = get_logger(__name__)


class PlaybackOrchestrator:
    """
    Drives media elements from feed lifecycle states.

    - mounted/active videos have an element; unmounted ones are released
    - becoming active: seek to 0, new progress session, play
    - leaving active: pause at once, detach the progress session
    - one shared mute flag for every element
    """

    def __init__(
        self,
        controller: FeedWindowController,
        element_factory: MediaElementFactory,
        sink: FeedbackSink,
        started_after: float = 1.0,
        finished_ratio: float = 0.67,
        muted: bool = False,
    ):
        self.controller = controller
        self.element_factory = element_factory
        self.sink = sink
        self.started_after = started_after
        self.finished_ratio = finished_ratio
        self.muted = muted

        self._elements: Dict[str, MediaElement] = {}
        self._active_id: Optional[str] = None
        self._tracker: Optional[ViewProgressTracker] = None
        self._play_task: Optional[asyncio.Task] = None

        controller.add_listener(self.on_states_changed)
        self.on_states_changed({}, controller.states())

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def tracker(self) -> Optional[ViewProgressTracker]:
        """Progress session of the active video."""
        return self._tracker

    def element(self, video_id: str) -> Optional[MediaElement]:
        return self._elements.get(video_id)

    def on_states_changed(self, previous: StateMap, current: StateMap):
        for video_id, state in current.items():
            if previous.get(video_id) is LifecycleState.ACTIVE and state is not LifecycleState.ACTIVE:
                self._deactivate(video_id)

        for video_id, state in current.items():
            if state is LifecycleState.UNMOUNTED:
                self._release(video_id)
            elif video_id not in self._elements:
                self._mount(video_id)

        for video_id, state in current.items():
            if state is LifecycleState.ACTIVE and previous.get(video_id) is not LifecycleState.ACTIVE:
                self._activate(video_id)

    def set_muted(self, muted: bool):
        """Apply the shared mute flag; playback position is untouched."""
        self.muted = muted
        for element in self._elements.values():
            element.muted = muted

    def toggle_playback(self, video_id: str) -> Optional[asyncio.Task]:
        """
        Click-to-pause / click-to-resume.

        Only the active video resumes; clicking a paused neighbour is a no-op.
        """
        element = self._elements.get(video_id)
        if element is None:
            return None
        if not element.paused:
            element.pause()
            return None
        if video_id != self._active_id:
            return None
        return self._schedule_play(video_id, element)

    def dispose(self):
        """Release every element and end the current session."""
        if self._active_id is not None:
            self._deactivate(self._active_id)
        for video_id in list(self._elements):
            self._release(video_id)

    def _mount(self, video_id: str):
        video = self.controller.get_video(video_id)
        element = self.element_factory(video)
        element.muted = self.muted
        self._elements[video_id] = element

    def _release(self, video_id: str):
        element = self._elements.pop(video_id, None)
        if element is not None:
            element.release()

    def _activate(self, video_id: str):
        element = self._elements[video_id]
        for other_id, other in self._elements.items():
            if other_id != video_id and not other.paused:
                other.pause()

        element.seek(0)
        tracker = ViewProgressTracker(
            video_id,
            self.sink,
            started_after=self.started_after,
            finished_ratio=self.finished_ratio,
        )
        tracker.attach(element)

        self._active_id = video_id
        self._tracker = tracker
        logger.debug("playback_activated", video_id=video_id)
        self._schedule_play(video_id, element)

    def _deactivate(self, video_id: str):
        if self._play_task is not None and not self._play_task.done():
            self._play_task.cancel()
        self._play_task = None

        if self._tracker is not None and self._tracker.video_id == video_id:
            self._tracker.detach()
            self._tracker = None
        if self._active_id == video_id:
            self._active_id = None

        element = self._elements.get(video_id)
        if element is not None:
            element.pause()

    def _schedule_play(self, video_id: str, element: MediaElement) -> asyncio.Task:
        self._play_task = asyncio.get_running_loop().create_task(
            self._start_playback(video_id, element)
        )
        return self._play_task

    async def _start_playback(self, video_id: str, element: MediaElement):
        try:
            await element.play()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Autoplay is best-effort; the video just stays paused
            logger.warning("playback_start_rejected", video_id=video_id, error=str(e))
