"""
Anomaly detection core

Maps incoming metric observations to the detectors configured for them and
classifies them with per-metric detector instances.

Architecture:
- Metric identity: deterministic metric keys used as lookup keys everywhere
- Registry: detector type key -> factory, frozen after startup
- Resolver: finds applicable detectors and builds them from their latest fitted model
- Stream mapper: one routed record per applicable detector
- Detector manager: one live detector per (detector, metric), classifies routed records

Usage:
    # Route metrics to detectors
    python -m src.consumers.mapper.map

    # Classify routed metrics
    python -m src.consumers.detector.detect
"""

from .models import DetectionRecord, MetricDescriptor, MetricKey, Observation, RoutedRecord
from .methods import (
    AnomalyLevel,
    AnomalyThresholds,
    ClassificationResult,
    ConstantThresholdDetector,
    ControlChartDetector,
    Detector,
    DetectorDescriptor,
    FittedModel,
)
from .identity import compute_key, format_tags, metric_id
from .catalog import ModelCatalogClient
from .registry import DetectorRegistry, build_default_registry
from .resolver import DetectorResolver, Resolution, ResolutionStatus
from .mapper import StreamMapper
from .manager import DetectorManager

__all__ = [
    "AnomalyLevel",
    "AnomalyThresholds",
    "ClassificationResult",
    "ConstantThresholdDetector",
    "ControlChartDetector",
    "DetectionRecord",
    "Detector",
    "DetectorDescriptor",
    "DetectorManager",
    "DetectorRegistry",
    "DetectorResolver",
    "FittedModel",
    "MetricDescriptor",
    "MetricKey",
    "ModelCatalogClient",
    "Observation",
    "Resolution",
    "ResolutionStatus",
    "RoutedRecord",
    "StreamMapper",
    "build_default_registry",
    "compute_key",
    "format_tags",
    "metric_id",
]
