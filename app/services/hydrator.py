"""
Hydrator Service

Enriches video IDs with display metadata from the video catalog.
"""

import time
from typing import Dict, List, Optional
import httpx

from ..config import get_settings
from ..core.logging import get_logger
from ..models.video import VideoItem

logger = get_logger(__name__)


class Hydrator:
    """
    Turns ordered id lists into VideoItems.

    Lookups go to the catalog's PostgREST endpoint (``/rest/v1/videos``).
    Rows are kept in a short-lived in-process cache because the same
    videos are requested repeatedly while a page is scrolled.
    """

    SELECT_COLUMNS = "id,title,url,coverUrl,description,authorId,views"

    def __init__(self, catalog_url: str, catalog_key: str, cache_ttl: int = 600):
        self.catalog_url = catalog_url.rstrip("/")
        self.catalog_key = catalog_key
        self._cache: Dict[str, tuple[float, VideoItem]] = {}
        self._cache_ttl = cache_ttl

    def _is_configured(self) -> bool:
        return bool(self.catalog_url and self.catalog_key)

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.catalog_key}",
            "apikey": self.catalog_key,
        }

    def _cached(self, video_id: str) -> Optional[VideoItem]:
        entry = self._cache.get(video_id)
        if entry and (time.time() - entry[0]) < self._cache_ttl:
            return entry[1]
        return None

    async def _fetch_rows(self, video_ids: List[str]) -> List[dict]:
        id_filter = ",".join(f'"{video_id}"' for video_id in video_ids)
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.catalog_url}/rest/v1/videos",
                    params={"select": self.SELECT_COLUMNS, "id": f"in.({id_filter})"},
                    headers=self._get_headers(),
                    timeout=10.0
                )
        except httpx.HTTPError as e:
            logger.warning("catalog_fetch_error", error=str(e))
            return []

        if response.status_code != 200:
            logger.warning(
                "catalog_fetch_failed",
                status=response.status_code,
                body=response.text[:200]
            )
            return []

        return response.json()

    async def hydrate(self, video_ids: List[str]) -> List[VideoItem]:
        """
        Fetch metadata for the given ids.

        Args:
            video_ids: Ordered ids (search or recommendation order)

        Returns:
            VideoItems in the same order; ids the catalog doesn't know are
            dropped.
        """
        if not video_ids:
            return []

        found: Dict[str, VideoItem] = {}
        missing: List[str] = []
        for video_id in video_ids:
            cached = self._cached(video_id)
            if cached:
                found[video_id] = cached
            else:
                missing.append(video_id)

        if missing and self._is_configured():
            now = time.time()
            for row in await self._fetch_rows(missing):
                try:
                    item = VideoItem(**row)
                except ValueError as e:
                    logger.warning("hydration_validation_failed", video_id=row.get("id"), error=str(e))
                    continue
                found[item.id] = item
                self._cache[item.id] = (now, item)
        elif missing:
            logger.warning("catalog_not_configured", missing=len(missing))

        dropped = [video_id for video_id in video_ids if video_id not in found]
        if dropped:
            logger.warning("hydration_missing_items", count=len(dropped), ids=dropped[:10])

        return [found[video_id] for video_id in video_ids if video_id in found]


# Singleton
_hydrator: Optional[Hydrator] = None


def get_hydrator() -> Hydrator:
    global _hydrator
    if _hydrator is None:
        settings = get_settings()
        _hydrator = Hydrator(settings.catalog_url, settings.catalog_key)
    return _hydrator
