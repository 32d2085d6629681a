"""
Retry with exponential backoff around any model catalog.
"""

import random
import time
from typing import Callable, TypeVar
from uuid import UUID

import structlog

from src.anomdetect.catalog import ModelCatalogClient
from src.anomdetect.methods.base import DetectorDescriptor, FittedModel
from src.anomdetect.models import MetricDescriptor
from src.core.errors import CatalogUnavailableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryingModelCatalog(ModelCatalogClient):
    """Retries CatalogUnavailableError with exponential backoff and jitter"""

    def __init__(
        self,
        delegate: ModelCatalogClient,
        max_retries: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.delegate = delegate
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep = sleep

    def find_applicable_detectors(self, metric: MetricDescriptor) -> list[DetectorDescriptor]:
        return self._with_retry(
            "find_applicable_detectors", lambda: self.delegate.find_applicable_detectors(metric)
        )

    def find_latest_model(self, detector_id: UUID) -> FittedModel | None:
        return self._with_retry(
            "find_latest_model", lambda: self.delegate.find_latest_model(detector_id)
        )

    def close(self) -> None:
        self.delegate.close()

    def _with_retry(self, operation: str, call: Callable[[], T]) -> T:
        for attempt in range(1, self.max_retries + 1):
            try:
                return call()
            except CatalogUnavailableError as e:
                if attempt == self.max_retries:
                    logger.error(
                        "Catalog unavailable, giving up",
                        operation=operation,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    "Catalog unavailable, retrying",
                    operation=operation,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_sec=round(delay, 2),
                )
                self.sleep(delay)
        raise AssertionError("unreachable")

    def backoff(self, attempt: int) -> float:
        """Delay before retrying after the given failed attempt"""
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        return delay + random.uniform(0, delay * 0.1)
