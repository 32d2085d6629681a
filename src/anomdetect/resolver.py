"""
Detector resolution: which detectors apply to a metric, and how to build a live
detector from its latest fitted model.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

import structlog

from src.core.errors import InvalidArgumentError, InvalidModelError, UnknownDetectorTypeError

from .catalog import ModelCatalogClient
from .methods.base import Detector, DetectorDescriptor
from .models import MetricDescriptor
from .registry import DetectorRegistry

logger = structlog.get_logger(__name__)


class ResolutionStatus(Enum):
    FOUND = "found"
    MODEL_NOT_FOUND = "model_not_found"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one detector descriptor

    Errors are raised, not returned: a Resolution is either FOUND with a
    detector or MODEL_NOT_FOUND without one.
    """

    descriptor: DetectorDescriptor
    status: ResolutionStatus
    detector: Detector | None = None

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    @classmethod
    def not_found(cls, descriptor: DetectorDescriptor) -> "Resolution":
        return cls(descriptor=descriptor, status=ResolutionStatus.MODEL_NOT_FOUND)


class DetectorResolver:
    """Resolves detector descriptors and detectors through the model catalog"""

    def __init__(self, catalog: ModelCatalogClient, registry: DetectorRegistry):
        if catalog is None:
            raise InvalidArgumentError("catalog can't be None")
        if registry is None:
            raise InvalidArgumentError("registry can't be None")
        self.catalog = catalog
        self.registry = registry

    def find_applicable_metas(self, metric: MetricDescriptor) -> list[DetectorDescriptor]:
        """Detector descriptors that apply to a metric, as reported by the catalog

        Raises:
            InvalidArgumentError: If metric is None
            CatalogUnavailableError: If the catalog cannot be reached
        """
        if metric is None:
            raise InvalidArgumentError("metric can't be None")
        return self.catalog.find_applicable_detectors(metric)

    def resolve_detector(
        self, descriptor: DetectorDescriptor, metric: MetricDescriptor | None = None
    ) -> Resolution:
        """Build a detector from the latest fitted model of a descriptor

        Args:
            descriptor: Detector to build
            metric: Metric the detector will classify. Not needed to build any
                current variant, so it may be None.

        Returns:
            Resolution FOUND with an initialized detector, or MODEL_NOT_FOUND
            when the detector has no fitted model yet

        Raises:
            InvalidArgumentError: If descriptor is None
            UnknownDetectorTypeError: If the detector type is not registered
            InvalidModelError: If the model params cannot initialize the detector
            CatalogUnavailableError: If the catalog cannot be reached
        """
        if descriptor is None:
            raise InvalidArgumentError("descriptor can't be None")

        model = self.catalog.find_latest_model(descriptor.detector_id)
        if model is None:
            logger.warning(
                "No fitted model for detector",
                detector_id=str(descriptor.detector_id),
                detector_type=descriptor.detector_type,
            )
            return Resolution.not_found(descriptor)

        factory = self.registry.resolve(descriptor.detector_type)
        detector = factory(model)

        logger.info(
            "Detector resolved",
            detector_id=str(descriptor.detector_id),
            detector=repr(detector),
            metric=metric.name if metric is not None else None,
        )
        return Resolution(descriptor=descriptor, status=ResolutionStatus.FOUND, detector=detector)

    def resolve_all(
        self, descriptors: list[DetectorDescriptor], metric: MetricDescriptor | None = None
    ) -> dict[UUID, Detector]:
        """Resolve a batch of descriptors, skipping the ones that cannot be built

        A descriptor with an unknown type, invalid params or no fitted model is
        logged and left out; the others are unaffected. Catalog outages still
        propagate.
        """
        detectors: dict[UUID, Detector] = {}
        for descriptor in descriptors:
            try:
                resolution = self.resolve_detector(descriptor, metric)
            except (UnknownDetectorTypeError, InvalidModelError) as e:
                logger.error(
                    "Skipping detector",
                    detector_id=str(descriptor.detector_id),
                    detector_type=descriptor.detector_type,
                    error=str(e),
                )
                continue

            if resolution.found:
                detectors[descriptor.detector_id] = resolution.detector

        return detectors
