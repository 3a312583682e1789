"""
Feed API Router

Paginated recommendation endpoint consumed by the feed player.
"""

import time
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.logging import get_logger
from ..core.security import get_current_user_optional
from ..models.response import FeedResponse, FeedMeta
from ..services.deduplication import DeduplicationService
from ..services.generator import FeedGenerator
from ..services.hydrator import get_hydrator
from ..services.recommender import get_recommender
from ..services.cache_service import get_redis_client

logger = get_logger(__name__)
settings = get_settings()

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/feed", tags=["feed"])

# Initialized on first request
_generator: Optional[FeedGenerator] = None


def get_generator() -> FeedGenerator:
    """Get or initialize the feed generator."""
    global _generator

    if _generator is None:
        dedup_service = DeduplicationService(
            redis_client=get_redis_client(),
            session_ttl=settings.session_ttl_seconds
        )
        _generator = FeedGenerator(get_recommender(), dedup_service, get_hydrator())

    return _generator


@router.get("/recommend", response_model=FeedResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def recommend(
    request: Request,
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
    limit: int = Query(settings.feed_page_size, ge=1, le=50, description="Page size"),
    current_user: Optional[dict] = Depends(get_current_user_optional)
):
    """
    Next page of recommended videos.

    Signed-in users get Gorse recommendations, anonymous visitors the
    latest uploads. ``nextCursor`` is null once there is nothing more.
    """
    start_time = time.time()
    uid = current_user["uid"] if current_user else None

    logger.info(
        "feed_request",
        uid=uid or "anonymous",
        limit=limit,
        has_cursor=cursor is not None
    )

    try:
        page = await get_generator().generate(user_id=uid, limit=limit, cursor=cursor)
    except Exception as e:
        logger.error("feed_error", uid=uid or "anonymous", error=str(e))
        raise

    latency_ms = int((time.time() - start_time) * 1000)

    logger.info(
        "feed_response",
        uid=uid or "anonymous",
        items=len(page.videos),
        latency_ms=latency_ms
    )

    return FeedResponse(
        videos=page.videos,
        nextCursor=page.next_cursor,
        meta=FeedMeta(
            limit=limit,
            itemCount=len(page.videos),
            hasMore=page.next_cursor is not None,
            generatedAt=datetime.utcnow(),
            latencyMs=latency_ms
        )
    )


@router.get("/health")
async def health_check():
    """Health check endpoint (no auth required)."""
    return {
        "status": "healthy",
        "service": "volo-feed",
        "timestamp": datetime.utcnow().isoformat()
    }
