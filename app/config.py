"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Firebase
    firebase_credentials_path: str = "./service-account.json"

    # Redis
    redis_url: str = "redis://localhost:6379"

    # Gorse recommender
    gorse_url: str = "http://localhost:8088"
    gorse_api_key: Optional[str] = None

    # Elasticsearch
    es_url: str = "http://localhost:9200"
    es_index: str = "videos"

    # Video catalog (PostgREST)
    catalog_url: str = ""
    catalog_key: str = ""

    # Object storage (Aliyun OSS)
    oss_bucket: str = ""
    oss_region: str = ""
    oss_access_key_id: str = ""
    oss_access_key_secret: str = ""
    upload_expiry_seconds: int = 3600         # 1 hour
    upload_max_bytes: int = 1048576000        # 1GB

    # Rate Limiting
    rate_limit_per_minute: int = 60

    # Feed Configuration
    feed_page_size: int = 5
    visibility_threshold: float = 0.6
    view_started_seconds: float = 1.0
    view_finished_ratio: float = 0.67

    # Session TTL (seconds)
    session_ttl_seconds: int = 600  # 10 minutes

    # Player client
    api_base_url: str = "http://localhost:8000"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def oss_base_url(self) -> str:
        """Public base URL of the object-storage bucket."""
        return f"https://{self.oss_bucket}.{self.oss_region}.aliyuncs.com"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
