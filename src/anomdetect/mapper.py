"""
Stream mapper: fans one observation out to every detector configured for its metric.
"""

import structlog

from .models import MetricDescriptor, Observation, RoutedRecord
from .resolver import DetectorResolver

logger = structlog.get_logger(__name__)


class StreamMapper:
    """Maps (metric, observation) pairs to routed records keyed by detector id

    Performs no model fetching; the consumer of the routed records builds and
    reuses detectors.
    """

    def __init__(self, resolver: DetectorResolver):
        self.resolver = resolver

    def map(
        self, metric: MetricDescriptor, observation: Observation, org_id: int = 1
    ) -> list[RoutedRecord]:
        """Route one observation to each applicable detector

        Returns:
            One RoutedRecord per distinct detector id, or an empty list when the
            metric has no detectors yet

        Raises:
            InvalidArgumentError: If metric is None
            CatalogUnavailableError: If the catalog cannot be reached
        """
        descriptors = self.resolver.find_applicable_metas(metric)

        if not descriptors:
            logger.debug("No detectors for metric, dropping observation", metric=metric.name)
            return []

        records: dict = {}
        for descriptor in descriptors:
            if descriptor.detector_id in records:
                continue
            records[descriptor.detector_id] = RoutedRecord(
                detector=descriptor,
                metric=metric,
                observation=observation,
                org_id=org_id,
            )

        logger.debug(
            "Observation mapped",
            metric=metric.name,
            detectors=[record.routing_key for record in records.values()],
        )
        return list(records.values())
