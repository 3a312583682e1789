"""
Player API Clients

httpx adapters the feed player uses to talk to the outside world:

- FeedApiClient: the paginated recommendation endpoint (a FeedSource)
- HttpFeedbackSink: view feedback, sent in the background (a FeedbackSink)
- ObjectUploader: direct multipart upload with a signed ticket
"""

import asyncio
from typing import Callable, Optional, Set
import httpx

from ..config import Settings
from ..core.exceptions import FeedFetchError, UploadError
from ..core.logging import get_logger
from ..models.upload import UploadTicket
from ..models.video import FeedbackKind, FeedPage

logger = get_logger(__name__)


def _auth_headers(token: Optional[str]) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


class FeedApiClient:
    """GET /feed/recommend, one page per call."""

    def __init__(
        self,
        base_url: str,
        page_size: int = 5,
        token: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.token = token
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, token: Optional[str] = None) -> "FeedApiClient":
        return cls(settings.api_base_url, page_size=settings.feed_page_size, token=token)

    async def fetch_page(self, cursor: Optional[str] = None) -> FeedPage:
        """
        Fetch one page.

        Raises:
            FeedFetchError on a non-200 response
            httpx.HTTPError on transport failures
        """
        params = {"limit": self.page_size}
        if cursor:
            params["cursor"] = cursor

        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.base_url}/feed/recommend",
                params=params,
                headers=_auth_headers(self.token),
                timeout=self.timeout
            )

        if response.status_code != 200:
            raise FeedFetchError(response.status_code, response.text[:200])

        return FeedPage.model_validate(response.json())


class HttpFeedbackSink:
    """
    Posts view feedback without making the caller wait.

    Each emit schedules a request on the running loop. Failures are logged
    and dropped; feedback is a hint to the recommender, not a record.
    """

    ENDPOINTS = {
        FeedbackKind.STARTED: "/analytics/view/started",
        FeedbackKind.FINISHED: "/analytics/view/finished",
    }

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._pending: Set[asyncio.Task] = set()

    def emit(self, video_id: str, kind: FeedbackKind) -> None:
        path = self.ENDPOINTS.get(kind)
        if path is None:
            raise ValueError(f"Not a view feedback kind: {kind}")

        task = asyncio.get_running_loop().create_task(self._post(path, video_id, kind))
        # Hold a reference until the request finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self):
        """Wait for in-flight feedback (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def _post(self, path: str, video_id: str, kind: FeedbackKind):
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.base_url}{path}",
                    json={"videoId": video_id},
                    headers=_auth_headers(self.token),
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            logger.warning("feedback_send_error", video_id=video_id, kind=kind.value, error=str(e))
            return

        if response.status_code != 200:
            logger.warning(
                "feedback_send_failed",
                video_id=video_id,
                kind=kind.value,
                status=response.status_code
            )


class ObjectUploader:
    """Uploads a file straight to the object store using an UploadTicket."""

    def __init__(self, bucket: str, region: str, timeout: float = 300.0):
        self.endpoint = f"https://{bucket}.{region}.aliyuncs.com"
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectUploader":
        return cls(settings.oss_bucket, settings.oss_region)

    async def upload(
        self,
        content: bytes,
        filename: str,
        ticket: UploadTicket,
        content_type: str = "application/octet-stream",
        progress: Optional[Callable[[float], None]] = None,
    ) -> str:
        """
        POST the file as multipart form data.

        Args:
            content: File bytes
            filename: Name sent with the file part
            ticket: Signed fields from POST /upload/{category}
            content_type: MIME type of the file part
            progress: Called with a percentage (0 then 100)

        Returns:
            The object key, to be passed to POST /video

        Raises:
            UploadError when the store answers anything but 200/204
        """
        if progress:
            progress(0)

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.endpoint,
                    data=ticket.form_fields(),
                    files={"file": (filename, content, content_type)},
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            raise UploadError(f"An error occurred during the file upload: {e}") from e

        if response.status_code not in (200, 204):
            raise UploadError(f"Upload failed with status: {response.status_code}")

        if progress:
            progress(100)

        logger.info("object_uploaded", key=ticket.object_key, size=len(content))
        return ticket.object_key
