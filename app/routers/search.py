"""
Search API Router

Video search backed by Elasticsearch.
"""

from typing import Optional, List
from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.logging import get_logger
from ..core.security import get_current_user_optional
from ..models.video import VideoItem
from ..services.hydrator import get_hydrator
from ..services.search_service import get_search_service

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/search", tags=["search"])
limiter = Limiter(key_func=get_remote_address)

SEARCH_LIMIT = 50


@router.get("/videos", response_model=List[VideoItem])
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def search_videos(
    request: Request,
    query: str = Query(..., min_length=1, max_length=100, description="Search query"),
    current_user: Optional[dict] = Depends(get_current_user_optional)
):
    """
    Search videos by title, tags and description.

    Results keep Elasticsearch's ranking.
    """
    uid = current_user["uid"] if current_user else "anonymous"
    logger.info("search_request", uid=uid, query=query)

    video_ids = await get_search_service().search(query, limit=SEARCH_LIMIT)
    return await get_hydrator().hydrate(video_ids)
