"""
Pytest Fixtures

Shared fakes and fixtures for testing.
"""

import asyncio
from typing import List, Optional, Tuple

import pytest
from unittest.mock import AsyncMock, patch

from app.models.video import FeedbackKind, FeedPage, VideoItem


def make_video(video_id: str) -> VideoItem:
    return VideoItem(
        id=video_id,
        title=f"Video {video_id}",
        url=f"https://cdn.example.com/video/{video_id}.mp4",
    )


def make_page(ids: List[str], next_cursor: Optional[str] = None) -> FeedPage:
    return FeedPage(videos=[make_video(i) for i in ids], next_cursor=next_cursor)


async def settle():
    """Let scheduled tasks (fetches, play() calls) run to completion."""
    for _ in range(5):
        await asyncio.sleep(0)


class FakeMediaElement:
    """In-memory media element driven by the test."""

    def __init__(self, video: VideoItem, duration: Optional[float] = None, reject_play: bool = False):
        self.video = video
        self.muted = False
        self.current_time = 0.0
        self.duration = duration
        self.paused = True
        self.released = False
        self.reject_play = reject_play
        self.play_calls = 0
        self.seeks: List[float] = []
        self._time_listeners = []
        self._metadata_listeners = []

    async def play(self):
        self.play_calls += 1
        if self.reject_play:
            raise RuntimeError("NotAllowedError: play() requires a user gesture")
        self.paused = False

    def pause(self):
        self.paused = True

    def seek(self, seconds: float):
        self.current_time = seconds
        self.seeks.append(seconds)

    def on_time_update(self, callback):
        self._time_listeners.append(callback)
        return lambda: self._time_listeners.remove(callback)

    def on_loaded_metadata(self, callback):
        self._metadata_listeners.append(callback)
        return lambda: self._metadata_listeners.remove(callback)

    def release(self):
        self.released = True

    # Test drivers
    def tick(self, elapsed: float):
        self.current_time = elapsed
        for callback in list(self._time_listeners):
            callback(elapsed, self.duration)

    def load_metadata(self, duration: float):
        self.duration = duration
        for callback in list(self._metadata_listeners):
            callback(duration)

    @property
    def listener_count(self) -> int:
        return len(self._time_listeners) + len(self._metadata_listeners)


class FakeObserver:
    """Records which video ids are being observed."""

    def __init__(self):
        self.observed: List[str] = []
        self.disconnected = False

    def observe(self, video_id: str):
        self.observed.append(video_id)

    def disconnect(self):
        self.disconnected = True
        self.observed.clear()


class RecordingSink:
    """FeedbackSink that keeps every event."""

    def __init__(self):
        self.events: List[Tuple[str, FeedbackKind]] = []

    def emit(self, video_id: str, kind: FeedbackKind):
        self.events.append((video_id, kind))


@pytest.fixture
def observer():
    return FakeObserver()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def source():
    """FeedSource whose next page is empty and final unless a test says otherwise."""
    mock = AsyncMock()
    mock.fetch_page.return_value = FeedPage(videos=[], next_cursor=None)
    return mock


@pytest.fixture
def element_factory():
    """Factory producing 10-second FakeMediaElements, remembered by video id."""
    created = {}

    def factory(video: VideoItem) -> FakeMediaElement:
        element = FakeMediaElement(video, duration=10.0)
        created[video.id] = element
        return element

    factory.created = created
    return factory


@pytest.fixture
def mock_firebase():
    """Accept any bearer token as test_user_123."""
    with patch("app.core.security.initialize_firebase"), \
         patch("app.core.security.auth") as mock_auth:
        mock_auth.verify_id_token.return_value = {
            "uid": "test_user_123",
            "email": "test@example.com",
            "name": "Test User",
        }
        yield mock_auth


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer mock_firebase_token"}
