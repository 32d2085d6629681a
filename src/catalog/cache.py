"""
Redis read-through cache in front of a model catalog.

Redis problems never fail a lookup: the cache is bypassed and the wrapped
catalog answers instead.
"""

import json
from datetime import datetime
from uuid import UUID

import redis
import structlog

from src.anomdetect.catalog import ModelCatalogClient
from src.anomdetect.identity import metric_id
from src.anomdetect.methods.base import DetectorDescriptor, FittedModel
from src.anomdetect.models import MetricDescriptor

from .models import CatalogConfig

logger = structlog.get_logger(__name__)

# Cached marker for "no fitted model yet", so misses are cached too
NO_MODEL = "null"

# Errors raised while decoding a corrupt cached entry
CORRUPT_ENTRY_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class CachingModelCatalog(ModelCatalogClient):
    """Caches detector lists and latest models in Redis with a TTL"""

    def __init__(self, delegate: ModelCatalogClient, config: CatalogConfig, client=None):
        self.delegate = delegate
        self.org_id = config.org_id
        self.ttl = config.cache_ttl_seconds
        try:
            self.redis = client or redis.Redis(
                host=config.redis_host,
                port=config.redis_port,
                db=config.redis_db,
                password=config.redis_password,
                decode_responses=True,
            )
            self.redis.ping()
            logger.info("Redis cache initialized", host=config.redis_host, port=config.redis_port)
        except Exception as e:
            logger.error("Failed to initialize Redis", error=str(e))
            raise

    def find_applicable_detectors(self, metric: MetricDescriptor) -> list[DetectorDescriptor]:
        key = self._make_key("detectors", metric_id(self.org_id, metric))

        cached = self._load(key)
        if cached is not None:
            try:
                return [DetectorDescriptor.from_dict(item) for item in json.loads(cached)]
            except CORRUPT_ENTRY_ERRORS as e:
                logger.warning("Corrupt cache entry, reloading", key=key, error=str(e))

        descriptors = self.delegate.find_applicable_detectors(metric)
        self._save(key, json.dumps([descriptor.to_dict() for descriptor in descriptors]))
        return descriptors

    def find_latest_model(self, detector_id: UUID) -> FittedModel | None:
        key = self._make_key("model", str(detector_id))

        cached = self._load(key)
        if cached is not None:
            try:
                return model_from_json(detector_id, cached)
            except CORRUPT_ENTRY_ERRORS as e:
                logger.warning("Corrupt cache entry, reloading", key=key, error=str(e))

        model = self.delegate.find_latest_model(detector_id)
        self._save(key, model_to_json(model))
        return model

    def close(self) -> None:
        self.delegate.close()

    def _load(self, key: str) -> str | None:
        try:
            return self.redis.get(key)
        except redis.RedisError as e:
            logger.warning("Failed to read from Redis, bypassing cache", key=key, error=str(e))
            return None

    def _save(self, key: str, value: str) -> bool:
        try:
            self.redis.setex(key, self.ttl, value)
            logger.debug("Cached catalog entry", key=key)
            return True
        except redis.RedisError as e:
            logger.warning("Failed to write to Redis", key=key, error=str(e))
            return False

    def _make_key(self, kind: str, identifier: str) -> str:
        """Generate Redis key"""
        return f"anomdetect:catalog:{kind}:{identifier}"


def model_to_json(model: FittedModel | None) -> str:
    if model is None:
        return NO_MODEL
    return json.dumps(
        {
            "params": dict(model.params),
            "fitted_at": model.fitted_at.isoformat() if model.fitted_at else None,
        }
    )


def model_from_json(detector_id: UUID, data: str) -> FittedModel | None:
    payload = json.loads(data)
    if payload is None:
        return None
    fitted_at = payload.get("fitted_at")
    return FittedModel(
        detector_id=detector_id,
        params=payload["params"],
        fitted_at=datetime.fromisoformat(fitted_at) if fitted_at else None,
    )
