"""
Tests for the detector manager.
"""

import math
import uuid
from unittest.mock import MagicMock, patch

import pytest

from src.anomdetect import (
    AnomalyLevel,
    DetectorDescriptor,
    DetectorManager,
    DetectorResolver,
    MetricDescriptor,
    ModelCatalogClient,
    Observation,
    RoutedRecord,
)
from src.core.errors import CatalogUnavailableError


@pytest.fixture
def manager(resolver):
    return DetectorManager(resolver)


def routed(descriptor, metric, value, timestamp=1759406400, org_id=1):
    return RoutedRecord(
        detector=descriptor,
        metric=metric,
        observation=Observation(timestamp=timestamp, value=value),
        org_id=org_id,
    )


class TestDetectorManager:
    """Tests for DetectorManager.classify"""

    def test_detector_built_once_and_reused(
        self, manager, catalog, cpu_metric, chart_descriptor
    ):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})

        for i in range(6):
            manager.classify(routed(chart_descriptor, cpu_metric, 10.0 + i % 2, 1759406400 + i))

        assert len(manager) == 1
        assert catalog.model_lookups == [chart_descriptor.detector_id]

    def test_warm_up_then_classification(self, manager, catalog, cpu_metric, chart_descriptor):
        # Registry fixture uses a warm-up period of 5
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})
        values = [11.0, 10.0, 11.0, 10.0, 10.5, 40.0]

        levels = [
            manager.classify(routed(chart_descriptor, cpu_metric, v)).result.level for v in values
        ]

        assert levels[:4] == [AnomalyLevel.UNKNOWN] * 4
        assert levels[4] is AnomalyLevel.NORMAL
        assert levels[5] is AnomalyLevel.STRONG

    def test_separate_state_per_metric(self, manager, catalog, cpu_metric, chart_descriptor):
        other = MetricDescriptor(
            name="cpu.usage",
            unit="percent",
            tags={"host": "srv-002", "dc": "marseille-1"},
        )
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})

        manager.classify(routed(chart_descriptor, cpu_metric, 10.0))
        manager.classify(routed(chart_descriptor, other, 10.0))

        assert len(manager) == 2
        first, second = manager.detectors.values()
        assert first is not second

    def test_separate_state_per_org(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})

        manager.classify(routed(chart_descriptor, cpu_metric, 10.0, org_id=1))
        manager.classify(routed(chart_descriptor, cpu_metric, 10.0, org_id=2))

        assert len(manager) == 2

    def test_detection_record(self, manager, catalog, cpu_metric, threshold_descriptor):
        catalog.add_detector(
            cpu_metric, threshold_descriptor, params={"upper_weak": 80.0, "upper_strong": 95.0}
        )

        detection = manager.classify(routed(threshold_descriptor, cpu_metric, 85.0))

        assert detection.detector_id == threshold_descriptor.detector_id
        assert detection.metric == cpu_metric
        assert detection.result.level is AnomalyLevel.WEAK
        assert detection.result.is_anomaly
        payload = detection.to_dict()
        assert payload["value"] == 85.0
        assert payload["result"]["level"] == "WEAK"

    def test_no_model_yet(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor)

        assert manager.classify(routed(chart_descriptor, cpu_metric, 10.0)) is None
        assert len(manager) == 0

    def test_model_arrives_later(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor)
        assert manager.classify(routed(chart_descriptor, cpu_metric, 10.0)) is None

        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})

        assert manager.classify(routed(chart_descriptor, cpu_metric, 10.0)) is not None
        assert len(catalog.model_lookups) == 2

    def test_unknown_type_skipped(self, manager, catalog, cpu_metric):
        descriptor = DetectorDescriptor(uuid.uuid4(), "holt-winters")
        catalog.add_detector(cpu_metric, descriptor, params={"alpha": 0.3})

        assert manager.classify(routed(descriptor, cpu_metric, 10.0)) is None

    def test_invalid_model_skipped(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": "n/a"})

        assert manager.classify(routed(chart_descriptor, cpu_metric, 10.0)) is None

    def test_invalid_metric_skipped(self, manager, catalog, chart_descriptor):
        metric = MetricDescriptor(name="", unit="percent")

        assert manager.classify(routed(chart_descriptor, metric, 10.0)) is None
        assert catalog.model_lookups == []

    def test_non_finite_value_skipped(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})
        manager.classify(routed(chart_descriptor, cpu_metric, 10.0))
        detector = next(iter(manager.detectors.values()))
        n_before = detector.n

        assert manager.classify(routed(chart_descriptor, cpu_metric, math.nan)) is None
        assert detector.n == n_before

    def test_catalog_error_propagates(self, registry, cpu_metric, chart_descriptor):
        catalog = MagicMock(spec=ModelCatalogClient)
        catalog.find_latest_model.side_effect = CatalogUnavailableError("down")
        manager = DetectorManager(DetectorResolver(catalog, registry))

        with pytest.raises(CatalogUnavailableError):
            manager.classify(routed(chart_descriptor, cpu_metric, 10.0))


class TestEvictIdle:
    def test_evicts_only_idle_detectors(
        self, manager, catalog, cpu_metric, chart_descriptor, threshold_descriptor
    ):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})
        catalog.add_detector(cpu_metric, threshold_descriptor, params={"upper_weak": 90.0})
        with patch("src.anomdetect.manager.time.monotonic", return_value=100.0):
            manager.classify(routed(chart_descriptor, cpu_metric, 10.0))
        with patch("src.anomdetect.manager.time.monotonic", return_value=250.0):
            manager.classify(routed(threshold_descriptor, cpu_metric, 10.0))

        assert manager.evict_idle(120.0, now=300.0) == 1
        assert len(manager) == 1
        assert manager.evict_idle(120.0, now=300.0) == 0

    def test_evicted_detector_is_rebuilt(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})
        with patch("src.anomdetect.manager.time.monotonic", return_value=100.0):
            manager.classify(routed(chart_descriptor, cpu_metric, 10.0))

        manager.evict_idle(60.0, now=200.0)
        manager.classify(routed(chart_descriptor, cpu_metric, 10.0))

        assert len(manager) == 1
        assert catalog.model_lookups == [chart_descriptor.detector_id] * 2

    def test_recent_use_keeps_detector(self, manager, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 10.0})
        for now in (100.0, 500.0):
            with patch("src.anomdetect.manager.time.monotonic", return_value=now):
                manager.classify(routed(chart_descriptor, cpu_metric, 10.0))

        assert manager.evict_idle(300.0, now=600.0) == 0
        assert len(manager) == 1
