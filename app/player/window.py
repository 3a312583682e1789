"""
Feed Window Controller

Owns the endless feed: the ordered, deduplicated list of videos, which one
is active, which are mounted, and when to fetch the next page.

Runs on a single asyncio loop. Visibility batches, page arrivals and
playback ticks are all delivered on that loop, so the state here needs no
locking; the only suspension point is the page fetch, which runs as a
background task and merges its result when it resolves.
"""

import asyncio
from typing import Callable, Dict, Iterable, List, Optional

from ..core.exceptions import InvalidObservationError
from ..core.logging import get_logger
from ..models.video import FeedPage, LifecycleState, VideoItem
from .capabilities import FeedSource, VisibilityEntry, VisibilityObserver

logger = get_logger(__name__)

StateMap = Dict[str, LifecycleState]
StateListener = Callable[[StateMap, StateMap], None]


class FeedWindowController:
    """
    Feed windowing and prefetch.

    Lifecycle states are derived, never stored: given the active video's
    page ``p``, videos on pages before ``p`` are unmounted, the active
    video is active, everything else is mounted. Scrolling back up makes
    earlier pages mounted again as soon as the active video moves there.
    """

    def __init__(
        self,
        source: FeedSource,
        observer: VisibilityObserver,
        page_size: int = 5,
        visibility_threshold: float = 0.6,
        seed: Optional[VideoItem] = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be positive")

        self.source = source
        self.observer = observer
        self.page_size = page_size
        self.visibility_threshold = visibility_threshold

        self._videos: List[VideoItem] = []
        self._positions: Dict[str, int] = {}
        self._active_id: Optional[str] = None
        self._cursor: Optional[str] = None
        self._exhausted = False
        self._fetch_task: Optional[asyncio.Task] = None
        self._listeners: List[StateListener] = []
        self._disposed = False

        # The deep-linked video always sits at index 0
        if seed is not None:
            self._append([seed])

    # =========================================================================
    # Read side
    # =========================================================================

    @property
    def videos(self) -> List[VideoItem]:
        return list(self._videos)

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def has_more(self) -> bool:
        return not self._exhausted

    @property
    def is_fetching(self) -> bool:
        return self._fetch_task is not None and not self._fetch_task.done()

    def get_video(self, video_id: str) -> Optional[VideoItem]:
        position = self._positions.get(video_id)
        return None if position is None else self._videos[position]

    def page_of(self, index: int) -> int:
        return index // self.page_size

    def active_page(self) -> int:
        if self._active_id is None:
            return 0
        return self.page_of(self._positions[self._active_id])

    def state_of(self, video_id: str) -> LifecycleState:
        position = self._positions.get(video_id)
        if position is None:
            raise KeyError(video_id)
        if self.page_of(position) < self.active_page():
            return LifecycleState.UNMOUNTED
        if video_id == self._active_id:
            return LifecycleState.ACTIVE
        return LifecycleState.MOUNTED

    def states(self) -> StateMap:
        """Current lifecycle state of every video, in feed order."""
        return {video.id: self.state_of(video.id) for video in self._videos}

    def add_listener(self, listener: StateListener):
        """Call ``listener(previous, current)`` after every state change."""
        self._listeners.append(listener)

    # =========================================================================
    # Write side
    # =========================================================================

    def start(self) -> Optional[asyncio.Task]:
        """Fetch the first page."""
        return self.request_next_page()

    def receive_page(self, page: FeedPage):
        """Merge a page: append unseen videos in server order, advance the cursor."""
        if self._disposed:
            return

        previous = self.states()
        added = self._append(page.videos)
        self._cursor = page.next_cursor
        self._exhausted = page.next_cursor is None

        logger.debug(
            "feed_page_merged",
            received=len(page.videos),
            added=len(added),
            total=len(self._videos),
            exhausted=self._exhausted
        )
        self._notify(previous)

    def handle_intersections(self, entries: Iterable[VisibilityEntry]):
        """
        Process one batch of viewport observations.

        Prefetches when any visible video is among the last ``page_size``
        of the feed, then activates the visible videos in batch order (the
        last one wins). A batch with nothing visible changes nothing.
        """
        if self._disposed:
            return

        visible = [
            entry for entry in entries
            if entry.intersection_ratio >= self.visibility_threshold
        ]
        for entry in visible:
            if entry.video_id not in self._positions:
                raise InvalidObservationError(entry.video_id)
        if not visible:
            return

        tail_ids = {video.id for video in self._videos[-self.page_size:]}
        if any(entry.video_id in tail_ids for entry in visible):
            self.request_next_page()

        previous = self.states()
        for entry in visible:
            self._active_id = entry.video_id
        self._notify(previous)

    def request_next_page(self) -> Optional[asyncio.Task]:
        """
        Start fetching the page after the current cursor.

        Returns the fetch task, or None when a fetch is already in flight,
        the feed is exhausted, or the controller is disposed.
        """
        if self._disposed or self._exhausted:
            return None
        if self.is_fetching:
            logger.debug("feed_fetch_in_flight", cursor=self._cursor)
            return None

        self._fetch_task = asyncio.get_running_loop().create_task(
            self._fetch_next(self._cursor)
        )
        return self._fetch_task

    def dispose(self):
        """Stop observing, drop listeners, abandon any pending fetch."""
        if self._disposed:
            return
        self._disposed = True
        self.observer.disconnect()
        if self.is_fetching:
            self._fetch_task.cancel()
        self._listeners.clear()
        logger.debug("feed_window_disposed", videos=len(self._videos))

    # =========================================================================
    # Internals
    # =========================================================================

    async def _fetch_next(self, cursor: Optional[str]):
        try:
            page = await self.source.fetch_page(cursor)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Cursor stays put; the next qualifying intersection retries
            logger.warning("feed_page_fetch_failed", cursor=cursor, error=str(e))
            return

        try:
            self.receive_page(page)
        except Exception as e:
            # Nobody awaits this task, so a listener failure would vanish
            logger.error("feed_page_merge_failed", cursor=cursor, error=str(e))

    def _append(self, videos: Iterable[VideoItem]) -> List[VideoItem]:
        added = []
        for video in videos:
            if video.id in self._positions:
                continue
            self._positions[video.id] = len(self._videos)
            self._videos.append(video)
            added.append(video)
            self.observer.observe(video.id)
        return added

    def _notify(self, previous: StateMap):
        current = self.states()
        if current == previous:
            return
        for listener in list(self._listeners):
            listener(previous, current)
