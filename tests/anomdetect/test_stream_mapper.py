"""
Tests for the stream mapper.
"""

import uuid

import pytest

from src.anomdetect import DetectorDescriptor, MetricDescriptor, StreamMapper
from src.core.errors import InvalidArgumentError


@pytest.fixture
def mapper(resolver):
    return StreamMapper(resolver)


class TestStreamMapper:
    """Tests for StreamMapper.map"""

    def test_fan_out_one_record_per_detector(self, mapper, catalog, cpu_metric, observation):
        descriptors = [
            DetectorDescriptor(uuid.uuid4(), "individuals-control-chart"),
            DetectorDescriptor(uuid.uuid4(), "individuals-control-chart"),
            DetectorDescriptor(uuid.uuid4(), "constant-threshold"),
        ]
        for descriptor in descriptors:
            catalog.add_detector(cpu_metric, descriptor)

        records = mapper.map(cpu_metric, observation)

        assert len(records) == 3
        assert {record.routing_key for record in records} == {
            str(d.detector_id) for d in descriptors
        }
        for record in records:
            assert record.metric is cpu_metric
            assert record.observation is observation
            assert record.org_id == 1

    def test_mapping_does_not_fetch_models(
        self, mapper, catalog, cpu_metric, observation, chart_descriptor
    ):
        catalog.add_detector(cpu_metric, chart_descriptor, params={"init_value": 1.0})

        mapper.map(cpu_metric, observation)

        assert catalog.model_lookups == []

    def test_duplicate_descriptors_collapse(
        self, mapper, catalog, cpu_metric, observation, chart_descriptor
    ):
        catalog.add_detector(cpu_metric, chart_descriptor)
        catalog.add_detector(cpu_metric, chart_descriptor)

        records = mapper.map(cpu_metric, observation)

        assert len(records) == 1
        assert records[0].detector == chart_descriptor

    def test_no_detectors(self, mapper, observation):
        metric = MetricDescriptor(name="disk.free", unit="bytes")

        assert mapper.map(metric, observation) == []

    def test_org_id_carried(self, mapper, catalog, cpu_metric, observation, chart_descriptor):
        catalog.add_detector(cpu_metric, chart_descriptor)

        records = mapper.map(cpu_metric, observation, org_id=7)

        assert records[0].org_id == 7

    def test_metric_required(self, mapper, observation):
        with pytest.raises(InvalidArgumentError):
            mapper.map(None, observation)

    def test_routed_record_serialization(
        self, mapper, catalog, cpu_metric, observation, chart_descriptor
    ):
        catalog.add_detector(cpu_metric, chart_descriptor)

        record = mapper.map(cpu_metric, observation)[0]

        assert record.to_dict() == {
            "detector": {
                "uuid": "3ec81aa2-2cdc-415e-b4f3-c1beb223ae60",
                "type": "individuals-control-chart",
            },
            "metric": {
                "name": "cpu.usage",
                "unit": "percent",
                "mtype": "gauge",
                "interval": 60,
                "tags": {"host": "srv-001", "dc": "marseille-1"},
            },
            "org_id": 1,
            "timestamp": 1759406400,
            "value": 42.0,
        }
