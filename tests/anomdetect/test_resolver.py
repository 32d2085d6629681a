"""
Tests for the detector resolver.
"""

import uuid
from unittest.mock import MagicMock

import pytest

from src.anomdetect import (
    ControlChartDetector,
    DetectorDescriptor,
    DetectorResolver,
    ModelCatalogClient,
    ResolutionStatus,
)
from src.core.errors import (
    CatalogUnavailableError,
    InvalidArgumentError,
    InvalidModelError,
    UnknownDetectorTypeError,
)


class TestFindApplicableMetas:
    """Tests for DetectorResolver.find_applicable_metas."""

    def test_passthrough(self, resolver, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor)

        assert resolver.find_applicable_metas(cpu_metric) == [chart_descriptor]
        assert catalog.detector_lookups == [cpu_metric]

    def test_no_detectors(self, resolver, cpu_metric):
        assert resolver.find_applicable_metas(cpu_metric) == []

    def test_metric_required(self, resolver):
        with pytest.raises(InvalidArgumentError, match="metric"):
            resolver.find_applicable_metas(None)

    def test_catalog_error_propagates(self, registry, cpu_metric):
        catalog = MagicMock(spec=ModelCatalogClient)
        catalog.find_applicable_detectors.side_effect = CatalogUnavailableError("down")
        resolver = DetectorResolver(catalog, registry)

        with pytest.raises(CatalogUnavailableError):
            resolver.find_applicable_metas(cpu_metric)


class TestResolveDetector:
    """Tests for DetectorResolver.resolve_detector."""

    def test_builds_detector_from_latest_model(
        self, resolver, catalog, cpu_metric, chart_descriptor
    ):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 42.0})

        resolution = resolver.resolve_detector(chart_descriptor, cpu_metric)

        assert resolution.found
        assert resolution.status is ResolutionStatus.FOUND
        assert resolution.descriptor == chart_descriptor
        assert isinstance(resolution.detector, ControlChartDetector)
        assert resolution.detector.init_value == 42.0
        # Registry default from the fixture
        assert resolution.detector.warm_up_period == 5

    def test_metric_may_be_none(self, resolver, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 1.0})

        assert resolver.resolve_detector(chart_descriptor, None).found

    def test_missing_model_is_not_found(self, registry, chart_descriptor):
        catalog = MagicMock(spec=ModelCatalogClient)
        catalog.find_latest_model.return_value = None
        factory = MagicMock()
        registry = MagicMock(wraps=registry)
        registry.resolve.return_value = factory
        resolver = DetectorResolver(catalog, registry)

        resolution = resolver.resolve_detector(chart_descriptor)

        assert resolution.status is ResolutionStatus.MODEL_NOT_FOUND
        assert not resolution.found
        assert resolution.detector is None
        catalog.find_latest_model.assert_called_once_with(chart_descriptor.detector_id)
        factory.assert_not_called()

    def test_unknown_type(self, resolver, catalog, cpu_metric):
        descriptor = DetectorDescriptor(uuid.uuid4(), "holt-winters")
        catalog.add_detector(cpu_metric, descriptor, params={"alpha": 0.5})

        with pytest.raises(UnknownDetectorTypeError):
            resolver.resolve_detector(descriptor, cpu_metric)

    def test_invalid_model(self, resolver, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"warm_up_period": 3})

        with pytest.raises(InvalidModelError):
            resolver.resolve_detector(chart_descriptor, cpu_metric)

    def test_descriptor_required(self, resolver):
        with pytest.raises(InvalidArgumentError, match="descriptor"):
            resolver.resolve_detector(None)

    def test_catalog_error_propagates(self, registry, chart_descriptor):
        catalog = MagicMock(spec=ModelCatalogClient)
        catalog.find_latest_model.side_effect = CatalogUnavailableError("timeout")
        resolver = DetectorResolver(catalog, registry)

        with pytest.raises(CatalogUnavailableError):
            resolver.resolve_detector(chart_descriptor)

    def test_fresh_instance_per_resolution(self, resolver, catalog, cpu_metric, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 1.0})

        first = resolver.resolve_detector(chart_descriptor, cpu_metric).detector
        second = resolver.resolve_detector(chart_descriptor, cpu_metric).detector

        assert first is not second


class TestResolveAll:
    """Tests for DetectorResolver.resolve_all."""

    def test_unknown_type_does_not_affect_other_descriptors(
        self, resolver, catalog, cpu_metric, chart_descriptor, threshold_descriptor
    ):
        unknown = DetectorDescriptor(uuid.uuid4(), "holt-winters")
        missing_model = DetectorDescriptor(uuid.uuid4(), "individuals-control-chart")
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 1.0})
        catalog.add_detector(cpu_metric, unknown, params={"alpha": 0.5})
        catalog.add_detector(cpu_metric, missing_model)
        catalog.add_detector(cpu_metric, threshold_descriptor, params={"upper_weak": 90.0})

        detectors = resolver.resolve_all(
            [chart_descriptor, unknown, missing_model, threshold_descriptor], cpu_metric
        )

        assert set(detectors) == {
            chart_descriptor.detector_id,
            threshold_descriptor.detector_id,
        }
        assert len(catalog.model_lookups) == 4

    def test_catalog_error_propagates(self, registry, chart_descriptor):
        catalog = MagicMock(spec=ModelCatalogClient)
        catalog.find_latest_model.side_effect = CatalogUnavailableError("down")
        resolver = DetectorResolver(catalog, registry)

        with pytest.raises(CatalogUnavailableError):
            resolver.resolve_all([chart_descriptor])


class TestConstruction:
    def test_requires_collaborators(self, catalog, registry):
        with pytest.raises(InvalidArgumentError):
            DetectorResolver(None, registry)
        with pytest.raises(InvalidArgumentError):
            DetectorResolver(catalog, None)
