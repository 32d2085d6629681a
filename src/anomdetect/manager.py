"""
Detector manager: the detection stage downstream of the stream mapper.

Keeps one live detector per (detector id, metric key) pair, building it on the
first routed record and reusing it for every later one.
"""

import time
from uuid import UUID

import structlog

from src.core.errors import (
    InvalidMetricError,
    InvalidModelError,
    InvalidObservationError,
    UnknownDetectorTypeError,
)

from .identity import compute_key
from .methods.base import Detector
from .models import DetectionRecord, MetricKey, RoutedRecord
from .resolver import DetectorResolver

logger = structlog.get_logger(__name__)


class DetectorManager:
    """Classifies routed records with per-(detector, metric) detector instances"""

    def __init__(self, resolver: DetectorResolver):
        self.resolver = resolver
        self.detectors: dict[tuple[UUID, MetricKey], Detector] = {}
        self.last_used: dict[tuple[UUID, MetricKey], float] = {}

    def classify(self, record: RoutedRecord) -> DetectionRecord | None:
        """Classify a routed record

        Returns:
            The detection record, or None when the record was skipped (no model
            yet, unknown type, invalid model, metric or observation)

        Raises:
            CatalogUnavailableError: If the detector had to be built and the
                catalog cannot be reached
        """
        try:
            detector = self._get_detector(record)
        except (UnknownDetectorTypeError, InvalidModelError, InvalidMetricError) as e:
            logger.error(
                "Cannot build detector, skipping record",
                detector_id=record.routing_key,
                detector_type=record.detector.detector_type,
                error=str(e),
            )
            return None

        if detector is None:
            return None

        try:
            result = detector.classify(record.observation.value)
        except InvalidObservationError as e:
            logger.warning(
                "Invalid observation, skipping record",
                detector_id=record.routing_key,
                metric=record.metric.name,
                error=str(e),
            )
            return None

        return DetectionRecord(
            detector=record.detector,
            metric=record.metric,
            observation=record.observation,
            result=result,
        )

    def evict_idle(self, max_idle_seconds: float, now: float | None = None) -> int:
        """Drop detectors that have not classified a record for max_idle_seconds

        An evicted detector is rebuilt from the catalog, with a fresh warm-up,
        when its metric reports again.
        """
        now = time.monotonic() if now is None else now
        stale = [key for key, used in self.last_used.items() if now - used >= max_idle_seconds]
        for key in stale:
            del self.detectors[key]
            del self.last_used[key]
        if stale:
            logger.info("Idle detectors evicted", count=len(stale), remaining=len(self.detectors))
        return len(stale)

    def _get_detector(self, record: RoutedRecord) -> Detector | None:
        key = (record.detector.detector_id, compute_key(record.org_id, record.metric))

        detector = self.detectors.get(key)
        if detector is None:
            resolution = self.resolver.resolve_detector(record.detector, record.metric)
            if not resolution.found:
                return None
            detector = self.detectors[key] = resolution.detector

        self.last_used[key] = time.monotonic()
        return detector

    def __len__(self) -> int:
        return len(self.detectors)
