"""
Tests for the feed player's HTTP adapters and FeedSession wiring.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from app.config import Settings
from app.core.exceptions import FeedFetchError, UploadError
from app.models.upload import UploadTicket
from app.models.video import FeedbackKind
from app.player.api_client import FeedApiClient, HttpFeedbackSink, ObjectUploader
from app.player.capabilities import VisibilityEntry
from app.player.session import FeedSession
from app.player.window import FeedWindowController

from conftest import make_page, settle


def mock_async_client(mock_client_class, method: str, status_code: int = 200, payload=None):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    mock_response.text = ""

    mock_client = AsyncMock()
    getattr(mock_client, method).return_value = mock_response
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.fixture
def ticket():
    return UploadTicket(
        OSSAccessKeyId="LTAI-test",
        policy="cG9saWN5",
        Signature="c2ln",
        key="video/1700000000000",
    )


class TestFeedApiClient:

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_fetch_page(self, mock_client_class):
        client = mock_async_client(mock_client_class, "get", payload={
            "videos": [{"id": "v1", "title": "One", "url": "https://cdn/v1.mp4"}],
            "nextCursor": "c2",
            "meta": {"limit": 5, "itemCount": 1, "hasMore": True},
        })
        api = FeedApiClient("http://api/", page_size=5, token="tok")

        page = await api.fetch_page("c1")

        assert [v.id for v in page.videos] == ["v1"]
        assert page.next_cursor == "c2"
        assert client.get.call_args.args[0] == "http://api/feed/recommend"
        assert client.get.call_args.kwargs["params"] == {"limit": 5, "cursor": "c1"}
        assert client.get.call_args.kwargs["headers"] == {"Authorization": "Bearer tok"}

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_first_page_has_no_cursor(self, mock_client_class):
        client = mock_async_client(mock_client_class, "get", payload={"videos": [], "nextCursor": None})

        await FeedApiClient("http://api").fetch_page(None)

        assert "cursor" not in client.get.call_args.kwargs["params"]

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_error_status_raises(self, mock_client_class):
        mock_async_client(mock_client_class, "get", status_code=503)

        with pytest.raises(FeedFetchError):
            await FeedApiClient("http://api").fetch_page()

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_backend_outage_keeps_feed_open(self, mock_client_class, observer):
        outage = MagicMock(status_code=502, text="gorse unavailable")
        recovered = MagicMock(status_code=200)
        recovered.json.return_value = {
            "videos": [{"id": f"v{i}", "title": "", "url": f"https://cdn/v{i}.mp4"} for i in (2, 3)],
            "nextCursor": "c2",
        }
        client = mock_async_client(mock_client_class, "get")
        client.get.side_effect = [outage, recovered]

        controller = FeedWindowController(FeedApiClient("http://api", page_size=5), observer)
        controller.receive_page(make_page(["v0", "v1"], "c1"))

        controller.handle_intersections([VisibilityEntry("v1", 1.0)])
        await settle()
        assert controller.has_more is True
        assert len(controller.videos) == 2

        controller.handle_intersections([VisibilityEntry("v0", 1.0)])
        await settle()

        cursors = [call.kwargs["params"]["cursor"] for call in client.get.call_args_list]
        assert cursors == ["c1", "c1"]
        assert [v.id for v in controller.videos] == ["v0", "v1", "v2", "v3"]


class TestHttpFeedbackSink:

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_emit_posts_in_background(self, mock_client_class):
        client = mock_async_client(mock_client_class, "post")
        sink = HttpFeedbackSink("http://api", token="tok")

        sink.emit("v1", FeedbackKind.STARTED)
        sink.emit("v1", FeedbackKind.FINISHED)
        await sink.drain()

        urls = [call.args[0] for call in client.post.call_args_list]
        assert urls == ["http://api/analytics/view/started", "http://api/analytics/view/finished"]
        assert client.post.call_args.kwargs["json"] == {"videoId": "v1"}

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_failures_are_not_raised(self, mock_client_class):
        client = mock_async_client(mock_client_class, "post")
        client.post.side_effect = httpx.ConnectError("offline")
        sink = HttpFeedbackSink("http://api")

        sink.emit("v1", FeedbackKind.STARTED)
        await sink.drain()

    @pytest.mark.asyncio
    async def test_like_is_not_view_feedback(self):
        with pytest.raises(ValueError):
            HttpFeedbackSink("http://api").emit("v1", FeedbackKind.LIKED)


class TestObjectUploader:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [200, 204])
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_upload_success(self, mock_client_class, status_code, ticket):
        client = mock_async_client(mock_client_class, "post", status_code=status_code)
        uploader = ObjectUploader("volo", "oss-cn-hangzhou")
        progress = []

        key = await uploader.upload(b"data", "clip.mp4", ticket, "video/mp4", progress=progress.append)

        assert key == "video/1700000000000"
        assert progress == [0, 100]
        assert client.post.call_args.args[0] == "https://volo.oss-cn-hangzhou.aliyuncs.com"
        assert client.post.call_args.kwargs["data"] == {
            "key": "video/1700000000000",
            "OSSAccessKeyId": "LTAI-test",
            "policy": "cG9saWN5",
            "Signature": "c2ln",
        }
        assert client.post.call_args.kwargs["files"] == {"file": ("clip.mp4", b"data", "video/mp4")}

    @pytest.mark.asyncio
    @patch("app.player.api_client.httpx.AsyncClient")
    async def test_upload_rejected(self, mock_client_class, ticket):
        mock_async_client(mock_client_class, "post", status_code=403)

        with pytest.raises(UploadError, match="403"):
            await ObjectUploader("volo", "oss-cn-hangzhou").upload(b"data", "clip.mp4", ticket)


class TestFeedSession:

    @pytest.mark.asyncio
    async def test_session_plays_and_reports(self, source, observer, element_factory, sink):
        source.fetch_page.return_value = make_page(["v0", "v1", "v2"], "c1")
        settings = Settings(feed_page_size=5, visibility_threshold=0.6)
        session = FeedSession(source, sink, observer, element_factory, settings)

        await session.start()
        session.controller.handle_intersections([VisibilityEntry("v0", 0.9)])
        await settle()
        element_factory.created["v0"].tick(1.5)

        assert sink.events == [("v0", FeedbackKind.STARTED)]
        assert element_factory.created["v0"].paused is False

        await session.close()

        assert observer.disconnected is True
        assert all(el.released for el in element_factory.created.values())

    @pytest.mark.asyncio
    async def test_connect_uses_http_adapters(self, observer, element_factory):
        settings = Settings(api_base_url="http://api")
        session = FeedSession.connect(settings, observer, element_factory, token="tok")

        assert isinstance(session.controller.source, FeedApiClient)
        assert isinstance(session.sink, HttpFeedbackSink)
        await session.close()
