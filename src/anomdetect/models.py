"""
Data models flowing through the detector mapping pipeline.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

from src.core.errors import InvalidMetricError

from .methods.base import ClassificationResult, DetectorDescriptor


@dataclass(frozen=True, eq=False)
class MetricDescriptor:
    """Descriptive attributes of a metric. Immutable once constructed."""

    name: str
    unit: str = ""
    mtype: str = "gauge"
    interval: int = 60
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        for attr in ("name", "unit", "mtype"):
            value = getattr(self, attr)
            if not isinstance(value, str):
                raise InvalidMetricError(f"Metric {attr} must be a string, got {value!r}")
        if not isinstance(self.tags, Mapping):
            raise InvalidMetricError(f"Metric tags must be a mapping, got {self.tags!r}")
        for key, value in self.tags.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise InvalidMetricError(
                    f"Metric tags must map strings to strings, got {key!r}: {value!r}"
                )

        # Copy so later mutation of the caller's dict cannot leak in
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricDescriptor):
            return NotImplemented
        return (
            self.name == other.name
            and self.unit == other.unit
            and self.mtype == other.mtype
            and self.interval == other.interval
            and dict(self.tags) == dict(other.tags)
        )

    def __hash__(self) -> int:
        return hash(
            (self.name, self.unit, self.mtype, self.interval, frozenset(self.tags.items()))
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "unit": self.unit,
            "mtype": self.mtype,
            "interval": self.interval,
            "tags": dict(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricDescriptor":
        return cls(
            name=data["name"],
            unit=data.get("unit", ""),
            mtype=data.get("mtype", "gauge"),
            interval=int(data.get("interval", 60)),
            tags=data.get("tags") or {},
        )


@dataclass(frozen=True)
class MetricKey:
    """Routing identity of a metric: organization plus a 16-byte digest"""

    org_id: int
    digest: bytes

    def __str__(self) -> str:
        return f"{self.org_id}.{self.digest.hex()}"


@dataclass(frozen=True)
class Observation:
    """A single metric data point"""

    timestamp: int
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Observation":
        return cls(timestamp=int(data["timestamp"]), value=float(data["value"]))


@dataclass(frozen=True)
class RoutedRecord:
    """Observation addressed to one detector, emitted by the stream mapper"""

    detector: DetectorDescriptor
    metric: MetricDescriptor
    observation: Observation
    org_id: int = 1

    @property
    def routing_key(self) -> str:
        return str(self.detector.detector_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "detector": self.detector.to_dict(),
            "metric": self.metric.to_dict(),
            "org_id": self.org_id,
            **self.observation.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoutedRecord":
        return cls(
            detector=DetectorDescriptor.from_dict(data["detector"]),
            metric=MetricDescriptor.from_dict(data["metric"]),
            observation=Observation.from_dict(data),
            org_id=int(data.get("org_id", 1)),
        )


@dataclass(frozen=True)
class DetectionRecord:
    """Classification of one routed observation by its detector"""

    detector: DetectorDescriptor
    metric: MetricDescriptor
    observation: Observation
    result: ClassificationResult

    @property
    def detector_id(self) -> UUID:
        return self.detector.detector_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "detector": self.detector.to_dict(),
            "metric": self.metric.to_dict(),
            **self.observation.to_dict(),
            "result": self.result.to_dict(),
        }
