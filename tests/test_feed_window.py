"""
Tests for FeedWindowController: dedup, activation, lifecycle states and
prefetching.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import InvalidObservationError
from app.models.video import FeedPage, LifecycleState
from app.player.capabilities import VisibilityEntry
from app.player.window import FeedWindowController

from conftest import make_page, make_video, settle


def ids(prefix_range):
    return [f"v{i}" for i in prefix_range]


def twelve_video_feed(source, observer) -> FeedWindowController:
    """Two full pages plus a partial one, page size 5."""
    controller = FeedWindowController(source, observer, page_size=5)
    controller.receive_page(make_page(ids(range(0, 5)), "c1"))
    controller.receive_page(make_page(ids(range(5, 10)), "c2"))
    controller.receive_page(make_page(ids(range(10, 12)), "c3"))
    return controller


def visible(video_id: str) -> VisibilityEntry:
    return VisibilityEntry(video_id, 1.0)


class TestDeduplication:

    def test_pages_append_in_arrival_order(self, source, observer):
        controller = FeedWindowController(source, observer, page_size=5)
        controller.receive_page(make_page(["a", "b", "c"], "c1"))
        controller.receive_page(make_page(["d", "e"], "c2"))

        assert [v.id for v in controller.videos] == ["a", "b", "c", "d", "e"]

    def test_repeated_ids_keep_first_position(self, source, observer):
        controller = FeedWindowController(source, observer, page_size=5)
        controller.receive_page(make_page(["a", "b", "c"], "c1"))
        controller.receive_page(make_page(["c", "d", "a", "e", "d"], "c2"))

        assert [v.id for v in controller.videos] == ["a", "b", "c", "d", "e"]

    def test_seed_stays_first_when_it_reappears(self, source, observer):
        controller = FeedWindowController(source, observer, page_size=5, seed=make_video("deep"))
        controller.receive_page(make_page(["a", "b"], "c1"))
        controller.receive_page(make_page(["c", "deep", "d"], "c2"))

        video_ids = [v.id for v in controller.videos]
        assert video_ids == ["deep", "a", "b", "c", "d"]
        assert len(video_ids) == len(set(video_ids))

    def test_new_videos_are_observed_once(self, source, observer):
        controller = FeedWindowController(source, observer, page_size=5)
        controller.receive_page(make_page(["a", "b"], "c1"))
        controller.receive_page(make_page(["b", "c"], "c2"))

        assert observer.observed == ["a", "b", "c"]


class TestEmptyFeed:

    def test_empty_feed_has_no_states(self, source, observer):
        controller = FeedWindowController(source, observer)

        assert controller.videos == []
        assert controller.states() == {}
        assert controller.active_id is None
        assert controller.active_page() == 0

    def test_empty_batch_is_ignored(self, source, observer):
        controller = FeedWindowController(source, observer)
        controller.handle_intersections([])
        assert controller.active_id is None

    @pytest.mark.asyncio
    async def test_start_loads_first_page(self, source, observer):
        source.fetch_page.return_value = make_page(["a", "b"], "c1")
        controller = FeedWindowController(source, observer)

        await controller.start()

        source.fetch_page.assert_awaited_once_with(None)
        assert [v.id for v in controller.videos] == ["a", "b"]
        assert controller.has_more is True


class TestActivation:

    @pytest.mark.asyncio
    async def test_last_visible_entry_in_batch_wins(self, source, observer):
        controller = twelve_video_feed(source, observer)

        controller.handle_intersections([visible("v2"), visible("v1")])

        assert controller.active_id == "v1"
        states = controller.states()
        assert list(states.values()).count(LifecycleState.ACTIVE) == 1

    @pytest.mark.asyncio
    async def test_below_threshold_does_not_activate(self, source, observer):
        controller = twelve_video_feed(source, observer)
        controller.handle_intersections([visible("v1")])

        controller.handle_intersections([VisibilityEntry("v2", 0.59)])

        assert controller.active_id == "v1"

    @pytest.mark.asyncio
    async def test_at_most_one_active_after_every_batch(self, source, observer):
        controller = twelve_video_feed(source, observer)
        batches = [
            [visible("v0")],
            [visible("v1"), visible("v2")],
            [VisibilityEntry("v3", 0.2)],
            [visible("v4"), VisibilityEntry("v5", 0.7), visible("v3")],
        ]

        for batch in batches:
            controller.handle_intersections(batch)
            active = [s for s in controller.states().values() if s is LifecycleState.ACTIVE]
            assert len(active) <= 1

    @pytest.mark.asyncio
    async def test_unknown_video_is_rejected(self, source, observer):
        controller = twelve_video_feed(source, observer)

        with pytest.raises(InvalidObservationError):
            controller.handle_intersections([visible("not-in-feed")])


class TestLifecycleStates:

    @pytest.mark.asyncio
    async def test_pages_before_active_page_are_unmounted(self, source, observer):
        controller = twelve_video_feed(source, observer)

        controller.handle_intersections([visible("v6")])
        states = controller.states()

        for i in range(0, 5):
            assert states[f"v{i}"] is LifecycleState.UNMOUNTED
        assert states["v6"] is LifecycleState.ACTIVE
        for i in [5, 7, 8, 9, 10, 11]:
            assert states[f"v{i}"] is LifecycleState.MOUNTED

    @pytest.mark.asyncio
    async def test_scrolling_back_remounts_earlier_pages(self, source, observer):
        controller = twelve_video_feed(source, observer)
        controller.handle_intersections([visible("v11")])
        await settle()
        assert controller.state_of("v3") is LifecycleState.UNMOUNTED
        assert controller.state_of("v8") is LifecycleState.UNMOUNTED

        controller.handle_intersections([visible("v3")])

        assert controller.state_of("v3") is LifecycleState.ACTIVE
        assert controller.state_of("v0") is LifecycleState.MOUNTED
        assert controller.state_of("v8") is LifecycleState.MOUNTED
        assert controller.state_of("v11") is LifecycleState.MOUNTED

    def test_everything_mounted_before_activation(self, source, observer):
        controller = FeedWindowController(source, observer, page_size=5)
        controller.receive_page(make_page(ids(range(0, 7)), "c1"))

        assert set(controller.states().values()) == {LifecycleState.MOUNTED}

    @pytest.mark.asyncio
    async def test_listeners_receive_previous_and_current(self, source, observer):
        controller = twelve_video_feed(source, observer)
        calls = []
        controller.add_listener(lambda previous, current: calls.append((previous, current)))

        controller.handle_intersections([visible("v1")])
        controller.handle_intersections([visible("v1")])

        assert len(calls) == 1
        previous, current = calls[0]
        assert previous["v1"] is LifecycleState.MOUNTED
        assert current["v1"] is LifecycleState.ACTIVE


class TestPrefetch:

    @pytest.mark.asyncio
    async def test_visible_video_in_last_page_size_triggers_one_fetch(self, source, observer):
        controller = twelve_video_feed(source, observer)

        controller.handle_intersections([visible("v7")])
        # A second batch while the first fetch is still in flight
        controller.handle_intersections([visible("v8")])
        await settle()

        source.fetch_page.assert_awaited_once_with("c3")

    @pytest.mark.asyncio
    async def test_visible_video_outside_tail_does_not_fetch(self, source, observer):
        controller = twelve_video_feed(source, observer)

        controller.handle_intersections([visible("v6")])
        await settle()

        source.fetch_page.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetched_page_is_merged(self, source, observer):
        controller = twelve_video_feed(source, observer)
        source.fetch_page.return_value = make_page(["v11", "v12", "v13"], "c4")

        controller.handle_intersections([visible("v10")])
        await settle()

        assert [v.id for v in controller.videos][-3:] == ["v11", "v12", "v13"]
        assert len(controller.videos) == 14
        assert controller.is_fetching is False

    @pytest.mark.asyncio
    async def test_exhausted_feed_stops_fetching(self, source, observer):
        controller = FeedWindowController(source, observer, page_size=5)
        controller.receive_page(make_page(ids(range(0, 3)), None))

        controller.handle_intersections([visible("v2")])
        await settle()

        assert controller.has_more is False
        source.fetch_page.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_fetch_keeps_cursor_and_retries(self, source, observer):
        controller = twelve_video_feed(source, observer)
        source.fetch_page.side_effect = [
            ConnectionError("network down"),
            make_page(["v12"], None),
        ]

        controller.handle_intersections([visible("v9")])
        await settle()
        assert len(controller.videos) == 12

        controller.handle_intersections([visible("v10")])
        await settle()

        assert [call.args[0] for call in source.fetch_page.await_args_list] == ["c3", "c3"]
        assert controller.videos[-1].id == "v12"

    @pytest.mark.asyncio
    async def test_listener_error_during_merge_is_contained(self, source, observer):
        controller = twelve_video_feed(source, observer)
        source.fetch_page.return_value = make_page(["v12"], "c4")

        def broken_listener(previous, current):
            raise RuntimeError("element factory failed")

        controller.add_listener(broken_listener)
        task = controller.request_next_page()
        await settle()

        assert task.done()
        assert task.exception() is None
        assert controller.videos[-1].id == "v12"
        assert controller.is_fetching is False


class TestDispose:

    @pytest.mark.asyncio
    async def test_dispose_disconnects_and_ignores_late_events(self, source, observer):
        controller = twelve_video_feed(source, observer)
        controller.handle_intersections([visible("v1")])

        controller.dispose()
        controller.handle_intersections([visible("v2")])
        controller.receive_page(make_page(["late"], None))

        assert observer.disconnected is True
        assert controller.active_id == "v1"
        assert len(controller.videos) == 12
        assert controller.request_next_page() is None

    @pytest.mark.asyncio
    async def test_dispose_cancels_pending_fetch(self, observer):
        gate = asyncio.Event()

        async def slow_fetch(cursor):
            await gate.wait()
            return FeedPage(videos=[], next_cursor=None)

        source = AsyncMock()
        source.fetch_page.side_effect = slow_fetch
        controller = FeedWindowController(source, observer)
        task = controller.start()
        await settle()

        controller.dispose()
        await settle()

        assert task.cancelled()
