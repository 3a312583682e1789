"""
Recommender Service

Thin client for the Gorse recommender REST API. Ranking happens inside
Gorse; this module only moves ids and feedback across the wire.
"""

from datetime import datetime
from typing import List, Optional
import httpx

from ..config import get_settings
from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger
from ..models.video import FeedbackKind

logger = get_logger(__name__)


class RecommenderClient:
    """
    Gorse client.

    Every call raises ExternalServiceError when Gorse is unreachable or
    answers with an error. An empty read means an empty list, never an
    outage, so callers can tell "no more items" from "try again".
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["X-API-Key"] = api_key

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient() as client:
            return await client.request(
                method,
                f"{self.base_url}{path}",
                headers=self.headers,
                timeout=self.timeout,
                **kwargs
            )

    async def _read_ids(self, path: str, params: dict, event: str) -> list:
        try:
            response = await self._request("GET", path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"{event}_error", path=path, error=str(e))
            raise ExternalServiceError("gorse", str(e)) from e

        if response.status_code != 200:
            logger.warning(
                f"{event}_failed",
                path=path,
                status=response.status_code,
                body=response.text[:200]
            )
            raise ExternalServiceError("gorse", f"status {response.status_code}")

        return response.json() or []

    async def recommend(self, user_id: str, n: int, offset: int = 0) -> List[str]:
        """
        Personalized item ids for a user, best first.

        Args:
            user_id: Recommender user id
            n: Number of ids
            offset: Position in the user's ranked list

        Raises:
            ExternalServiceError: Gorse unreachable or answered non-200
        """
        item_ids = await self._read_ids(
            f"/api/recommend/{user_id}",
            {"n": n, "offset": offset},
            "gorse_recommend"
        )
        return [str(item_id) for item_id in item_ids]

    async def latest(self, n: int, offset: int = 0) -> List[str]:
        """Newest items; anonymous visitors and cold-start users."""
        entries = await self._read_ids(
            "/api/latest",
            {"n": n, "offset": offset},
            "gorse_latest"
        )
        # Non-personalized endpoints return [{"Id": ..., "Score": ...}]
        return [str(entry["Id"]) for entry in entries]

    async def insert_feedback(
        self,
        user_id: str,
        item_id: str,
        kind: FeedbackKind,
        timestamp: Optional[datetime] = None
    ) -> None:
        """Record one feedback event."""
        payload = [{
            "FeedbackType": kind.gorse_type,
            "UserId": user_id,
            "ItemId": item_id,
            "Timestamp": (timestamp or datetime.utcnow()).isoformat(),
        }]

        try:
            response = await self._request("POST", "/api/feedback", json=payload)
        except httpx.HTTPError as e:
            raise ExternalServiceError("gorse", str(e)) from e

        if response.status_code != 200:
            raise ExternalServiceError("gorse", f"status {response.status_code}")

        logger.info(
            "gorse_feedback_inserted",
            uid=user_id,
            item_id=item_id,
            feedback=kind.gorse_type
        )

    async def delete_feedback(self, user_id: str, item_id: str, kind: FeedbackKind) -> None:
        """Remove a feedback event (e.g. unlike)."""
        path = f"/api/feedback/{kind.gorse_type}/{user_id}/{item_id}"

        try:
            response = await self._request("DELETE", path)
        except httpx.HTTPError as e:
            raise ExternalServiceError("gorse", str(e)) from e

        if response.status_code != 200:
            raise ExternalServiceError("gorse", f"status {response.status_code}")

        logger.info(
            "gorse_feedback_deleted",
            uid=user_id,
            item_id=item_id,
            feedback=kind.gorse_type
        )

    async def insert_item(self, item_id: str, labels: List[str], categories: List[str]) -> None:
        """Register a new video so it can be recommended."""
        payload = {
            "ItemId": item_id,
            "IsHidden": False,
            "Labels": labels,
            "Categories": categories,
            "Timestamp": datetime.utcnow().isoformat(),
            "Comment": "",
        }

        try:
            response = await self._request("POST", "/api/item", json=payload)
        except httpx.HTTPError as e:
            raise ExternalServiceError("gorse", str(e)) from e

        if response.status_code != 200:
            raise ExternalServiceError("gorse", f"status {response.status_code}")


# Singleton
_recommender: Optional[RecommenderClient] = None


def get_recommender() -> RecommenderClient:
    global _recommender
    if _recommender is None:
        settings = get_settings()
        _recommender = RecommenderClient(settings.gorse_url, settings.gorse_api_key)
    return _recommender
