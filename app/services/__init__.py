"""Clients for the services behind the feed."""

from .deduplication import DeduplicationService
from .generator import FeedGenerator
from .hydrator import Hydrator, get_hydrator
from .recommender import RecommenderClient, get_recommender
from .search_service import SearchService, get_search_service
from .upload_signer import UploadSigner
from .cache_service import get_redis_client
from .catalog_service import CatalogService, get_catalog_service

__all__ = [
    "DeduplicationService",
    "FeedGenerator",
    "Hydrator",
    "get_hydrator",
    "RecommenderClient",
    "get_recommender",
    "SearchService",
    "get_search_service",
    "UploadSigner",
    "get_redis_client",
    "CatalogService",
    "get_catalog_service",
]
