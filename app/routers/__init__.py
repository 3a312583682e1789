"""API Routers."""

from .feed import router as feed_router
from .analytics import router as analytics_router
from .search import router as search_router
from .upload import router as upload_router
from .video import router as video_router

__all__ = [
    "feed_router",
    "analytics_router",
    "search_router",
    "upload_router",
    "video_router",
]
