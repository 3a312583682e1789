"""
Catalog Service

Writes video rows to the catalog (PostgREST ``/rest/v1/videos``), the
table the Hydrator reads feed and search results from.
"""

from typing import Optional
import httpx

from ..config import get_settings
from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger
from ..models.video import VideoItem

logger = get_logger(__name__)


class CatalogService:
    """Catalog writes. Failures raise ExternalServiceError."""

    def __init__(self, catalog_url: str, catalog_key: str, timeout: float = 10.0):
        self.catalog_url = catalog_url.rstrip("/")
        self.catalog_key = catalog_key
        self.timeout = timeout

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.catalog_key}",
            "apikey": self.catalog_key,
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    async def insert_video(self, video: VideoItem) -> None:
        """Create the catalog row for a newly uploaded video."""
        if not (self.catalog_url and self.catalog_key):
            raise ExternalServiceError("catalog", "not configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.catalog_url}/rest/v1/videos",
                    json=video.model_dump(by_alias=True),
                    headers=self._get_headers(),
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError("catalog", str(e)) from e

        if response.status_code not in (200, 201):
            logger.warning(
                "catalog_insert_failed",
                video_id=video.id,
                status=response.status_code,
                body=response.text[:200]
            )
            raise ExternalServiceError("catalog", f"status {response.status_code}")

        logger.info("catalog_video_inserted", video_id=video.id)


# Singleton
_catalog: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    global _catalog
    if _catalog is None:
        settings = get_settings()
        _catalog = CatalogService(settings.catalog_url, settings.catalog_key)
    return _catalog
