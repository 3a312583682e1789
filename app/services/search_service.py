"""
Search Service

Elasticsearch client for video lookups. Ranking is Elasticsearch's; this
service only returns ordered ids and keeps the index in sync on upload.
"""

from typing import List, Optional
import httpx

from ..config import get_settings
from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger

logger = get_logger(__name__)


class SearchService:
    """
    Full-text search over video titles, descriptions and tags.
    """

    SEARCH_FIELDS = ["title^3", "tags^2", "description"]

    def __init__(self, es_url: str, index: str = "videos", timeout: float = 5.0):
        self.es_url = es_url.rstrip("/")
        self.index = index
        self.timeout = timeout

    async def search(self, query: str, limit: int = 50) -> List[str]:
        """
        Search for videos matching query.

        Args:
            query: Search string
            limit: Max results

        Returns:
            Matching video ids, best match first. Empty on blank query or
            when Elasticsearch is unreachable.
        """
        if not query or not query.strip():
            return []

        body = {
            "size": limit,
            "_source": False,
            "query": {
                "multi_match": {
                    "query": query.strip(),
                    "fields": self.SEARCH_FIELDS,
                    "fuzziness": "AUTO",
                }
            },
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.es_url}/{self.index}/_search",
                    json=body,
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            logger.error("search_request_error", query=query, error=str(e))
            return []

        if response.status_code != 200:
            logger.error(
                "search_request_failed",
                query=query,
                status=response.status_code,
                body=response.text[:200]
            )
            return []

        hits = response.json().get("hits", {}).get("hits", [])
        return [hit["_id"] for hit in hits]

    async def insert_video(
        self,
        video_id: str,
        title: str,
        description: str,
        tags: List[str]
    ) -> None:
        """Index (or re-index) one video document."""
        document = {
            "title": title,
            "description": description,
            "tags": tags,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.put(
                    f"{self.es_url}/{self.index}/_doc/{video_id}",
                    json=document,
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError("elasticsearch", str(e)) from e

        if response.status_code not in (200, 201):
            raise ExternalServiceError("elasticsearch", f"status {response.status_code}")

        logger.info("search_video_indexed", video_id=video_id)


# Singleton
_search_service: Optional[SearchService] = None

def get_search_service() -> SearchService:
    global _search_service
    if _search_service is None:
        settings = get_settings()
        _search_service = SearchService(settings.es_url, settings.es_index)
    return _search_service
