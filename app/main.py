"""
Volo Feed Backend

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from .config import get_settings
from .core.logging import setup_logging, get_logger
from .core.exceptions import register_exception_handlers
from .routers import feed_router, analytics_router, search_router, upload_router, video_router
from .services.cache_service import close_redis_client
from .services.upload_signer import UploadSigner

# Initialize
settings = get_settings()
setup_logging()
logger = get_logger(__name__)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "app_startup",
        environment=settings.environment,
        debug=settings.debug
    )

    if not settings.oss_access_key_secret:
        logger.warning("oss_not_configured")
    app.state.upload_signer = UploadSigner.from_settings(settings)

    yield

    await close_redis_client()
    logger.info("app_shutdown")


# Create FastAPI app
app = FastAPI(
    title="Volo Feed Backend",
    description="Short-video recommendation feed, view feedback and uploads",
    version="0.3.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else ["https://volo.video"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(feed_router)
app.include_router(analytics_router)
app.include_router(search_router)
app.include_router(upload_router)
app.include_router(video_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Volo Feed Backend",
        "version": "0.3.0",
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
    }


@app.get("/health")
async def health():
    """Health check for load balancers."""
    return {"status": "healthy"}
