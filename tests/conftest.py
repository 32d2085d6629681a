"""
Pytest configuration and shared fixtures.
"""

import uuid
from datetime import datetime, timezone

import pytest

from src.anomdetect import (
    DetectorDescriptor,
    DetectorResolver,
    FittedModel,
    MetricDescriptor,
    ModelCatalogClient,
    Observation,
    build_default_registry,
)
from src.catalog import CatalogConfig
from src.consumers.detector.models import DetectorManagerConfig
from src.consumers.mapper.models import MapperConfig


class InMemoryCatalog(ModelCatalogClient):
    """Model catalog backed by dicts, recording every lookup"""

    def __init__(self):
        self.detectors: dict[str, list[DetectorDescriptor]] = {}
        self.models: dict[uuid.UUID, FittedModel] = {}
        self.detector_lookups = []
        self.model_lookups = []

    def add_detector(self, metric: MetricDescriptor, descriptor: DetectorDescriptor, params=None):
        self.detectors.setdefault(metric.name, []).append(descriptor)
        if params is not None:
            self.models[descriptor.detector_id] = FittedModel(
                detector_id=descriptor.detector_id,
                params=params,
                fitted_at=datetime(2025, 10, 2, 12, 0, tzinfo=timezone.utc),
            )

    def find_applicable_detectors(self, metric):
        self.detector_lookups.append(metric)
        return list(self.detectors.get(metric.name, []))

    def find_latest_model(self, detector_id):
        self.model_lookups.append(detector_id)
        return self.models.get(detector_id)


@pytest.fixture
def cpu_metric():
    """Gauge metric with a couple of tags"""
    return MetricDescriptor(
        name="cpu.usage",
        unit="percent",
        mtype="gauge",
        interval=60,
        tags={"host": "srv-001", "dc": "marseille-1"},
    )


@pytest.fixture
def observation():
    return Observation(timestamp=1759406400, value=42.0)


@pytest.fixture
def catalog():
    return InMemoryCatalog()


@pytest.fixture
def registry():
    return build_default_registry(warm_up_period=5)


@pytest.fixture
def resolver(catalog, registry):
    return DetectorResolver(catalog, registry)


@pytest.fixture
def chart_descriptor():
    return DetectorDescriptor(
        detector_id=uuid.UUID("3ec81aa2-2cdc-415e-b4f3-c1beb223ae60"),
        detector_type="individuals-control-chart",
    )


@pytest.fixture
def threshold_descriptor():
    return DetectorDescriptor(
        detector_id=uuid.UUID("8c3e9b3a-6f1d-4f0e-9a55-1d2b1f0e7c42"),
        detector_type="constant-threshold",
    )


# Service configuration fixtures
@pytest.fixture
def catalog_config():
    return CatalogConfig(
        model_service_url="http://model-service:8008",
        request_timeout_seconds=1.0,
        max_retries=2,
        retry_base_delay_seconds=0.0,
    )


@pytest.fixture
def mapper_config(catalog_config):
    return MapperConfig(
        kafka_bootstrap_servers="localhost:9092",
        inbound_topic="test-metrics",
        outbound_topic="test-mapped-metrics",
        kafka_group_id="test-mapper",
        catalog=catalog_config,
    )


@pytest.fixture
def manager_config(catalog_config):
    return DetectorManagerConfig(
        kafka_bootstrap_servers="localhost:9092",
        inbound_topic="test-mapped-metrics",
        outbound_topic="test-anomalies",
        kafka_group_id="test-manager",
        warm_up_period=3,
        catalog=catalog_config,
    )
