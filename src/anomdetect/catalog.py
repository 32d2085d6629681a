"""
Model catalog interface consumed by the detector resolver.

Concrete catalogs (HTTP model service, PostgreSQL, caching and retrying
decorators) live in ``src.catalog``.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from .methods.base import DetectorDescriptor, FittedModel
from .models import MetricDescriptor


class ModelCatalogClient(ABC):
    """Read-only access to detector descriptors and their fitted models

    Both operations may block on the network and raise CatalogUnavailableError
    when the catalog cannot be reached.
    """

    @abstractmethod
    def find_applicable_detectors(self, metric: MetricDescriptor) -> list[DetectorDescriptor]:
        """Detectors configured for a metric. Empty when there are none, never None."""
        pass

    @abstractmethod
    def find_latest_model(self, detector_id: UUID) -> FittedModel | None:
        """Most recently fitted model of a detector, or None when none exists yet"""
        pass

    def close(self) -> None:
        """Release any held connection"""
