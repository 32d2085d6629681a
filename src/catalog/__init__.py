"""
Model catalog clients.

Backends:
- http: the model service REST API
- postgres: detector and model tables in PostgreSQL

Any backend can be wrapped with retries and a Redis read-through cache.
"""

import structlog

from src.anomdetect.catalog import ModelCatalogClient

from .cache import CachingModelCatalog
from .database import PostgresModelCatalog
from .http import HttpModelCatalog
from .models import CatalogConfig
from .retry import RetryingModelCatalog

logger = structlog.get_logger(__name__)

BACKENDS = ("http", "postgres")


def build_catalog(config: CatalogConfig) -> ModelCatalogClient:
    """Build the configured catalog backend with its decorators

    Raises:
        ValueError: If the backend is not supported
    """
    if config.backend == "http":
        catalog: ModelCatalogClient = HttpModelCatalog(
            config.model_service_url,
            org_id=config.org_id,
            timeout=config.request_timeout_seconds,
        )
    elif config.backend == "postgres":
        catalog = PostgresModelCatalog(config)
    else:
        raise ValueError(
            f"Unknown catalog backend '{config.backend}'. Available backends: {', '.join(BACKENDS)}"
        )

    catalog = RetryingModelCatalog(
        catalog,
        max_retries=config.max_retries,
        base_delay=config.retry_base_delay_seconds,
        max_delay=config.retry_max_delay_seconds,
    )

    if config.cache_enabled:
        catalog = CachingModelCatalog(catalog, config)

    logger.info(
        "Model catalog built",
        backend=config.backend,
        max_retries=config.max_retries,
        cache_enabled=config.cache_enabled,
    )
    return catalog


__all__ = [
    "BACKENDS",
    "CachingModelCatalog",
    "CatalogConfig",
    "HttpModelCatalog",
    "PostgresModelCatalog",
    "RetryingModelCatalog",
    "build_catalog",
]
