"""
Base abstract interface for detector variants.

Every variant inherits from Detector and implements classify(), consuming one
observation at a time and mutating only its own state. Variants are built from
a FittedModel by the factory registered for their type key.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

import pandas as pd

from src.core.errors import InvalidObservationError


class AnomalyLevel(Enum):
    """Outcome of classifying one observation"""

    UNKNOWN = "UNKNOWN"
    NORMAL = "NORMAL"
    WEAK = "WEAK"
    STRONG = "STRONG"


@dataclass(frozen=True)
class AnomalyThresholds:
    """Bounds used for a classification decision. Unused sides stay None."""

    upper_strong: float | None = None
    upper_weak: float | None = None
    lower_weak: float | None = None
    lower_strong: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassificationResult:
    """Result of classifying one observation"""

    level: AnomalyLevel
    value: float
    thresholds: AnomalyThresholds | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_anomaly(self) -> bool:
        return self.level in (AnomalyLevel.WEAK, AnomalyLevel.STRONG)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            "level": self.level.value,
            "value": self.value,
            "thresholds": self.thresholds.to_dict() if self.thresholds else None,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class DetectorDescriptor:
    """Which detector variant applies to a metric, independent of its parameters"""

    detector_id: UUID
    detector_type: str

    def to_dict(self) -> dict:
        return {"uuid": str(self.detector_id), "type": self.detector_type}

    @classmethod
    def from_dict(cls, data: dict) -> "DetectorDescriptor":
        return cls(detector_id=UUID(str(data["uuid"])), detector_type=data["type"])


@dataclass(frozen=True)
class FittedModel:
    """Fitted parameters for exactly one detector (immutable once fetched)"""

    detector_id: UUID
    params: Mapping[str, Any]
    fitted_at: datetime | None = None

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


class Detector(ABC):
    """Abstract base class for all detector variants

    A detector instance belongs to exactly one (detector, metric) pair and is
    not safe for concurrent use; callers serialize access per instance.
    """

    @abstractmethod
    def classify(self, value: float) -> ClassificationResult:
        """Classify one observation value

        Raises:
            InvalidObservationError: If the value is NaN or infinite. The
                detector state is left untouched.
        """
        pass

    @property
    @abstractmethod
    def detector_type(self) -> str:
        """Registry key of this variant"""
        pass

    @abstractmethod
    def get_params(self) -> dict[str, Any]:
        """Parameters this detector was initialized with"""
        pass

    @staticmethod
    def validate_value(value: float) -> float:
        """Reject values that cannot be classified"""
        try:
            value = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidObservationError(f"Observation value is not a number: {value!r}") from e
        if not math.isfinite(value):
            raise InvalidObservationError(f"Observation value must be finite, got {value}")
        return value

    def classify_series(self, timeseries: pd.DataFrame) -> pd.DataFrame:
        """Feed a whole series through the detector, in timestamp order

        Args:
            timeseries: DataFrame with columns ['timestamp', 'value']

        Returns:
            DataFrame with one row per observation: timestamp, value, level and
            the result details (limits, statistics) flattened into columns.
        """
        self.validate_timeseries(timeseries)

        rows = []
        for point in timeseries.sort_values("timestamp").itertuples(index=False):
            result = self.classify(point.value)
            rows.append(
                {
                    "timestamp": point.timestamp,
                    "value": result.value,
                    "level": result.level.value,
                    **result.details,
                }
            )
        return pd.DataFrame(rows)

    def validate_timeseries(self, timeseries: pd.DataFrame) -> None:
        """Validate that the timeseries has the required format

        Raises:
            ValueError: If the timeseries is invalid
        """
        if timeseries.empty:
            raise ValueError("Timeseries is empty")

        required_columns = ["timestamp", "value"]
        missing = set(required_columns) - set(timeseries.columns)
        if missing:
            raise ValueError(f"Timeseries missing required columns: {missing}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(params={self.get_params()})"
