"""
Configuration for model catalog clients.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CatalogConfig:
    """Configuration for reaching the model catalog"""

    backend: str = "http"  # 'http' or 'postgres'
    org_id: int = 1

    # Model service (HTTP backend)
    model_service_url: str = "http://localhost:8008"
    request_timeout_seconds: float = 5.0

    # PostgreSQL settings (postgres backend)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_database: str = "anomdetect_db"
    postgres_user: str = "anomdetect"
    postgres_password: str = "anomdetect_password"
    postgres_create_tables: bool = False  # Create the catalog tables on startup

    # Retry settings, applied around any backend
    max_retries: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 5.0

    # Redis cache settings (disabled when cache_enabled is False)
    cache_enabled: bool = False
    cache_ttl_seconds: int = 300
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
