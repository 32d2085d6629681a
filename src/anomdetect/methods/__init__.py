"""
Detector variants and their default registrations.
"""

from functools import partial

from .base import (
    AnomalyLevel,
    AnomalyThresholds,
    ClassificationResult,
    Detector,
    DetectorDescriptor,
    FittedModel,
)
from .constant_threshold import ConstantThresholdDetector
from .control_chart import DEFAULT_WARM_UP_PERIOD, ControlChartDetector


def default_factories(warm_up_period: int = DEFAULT_WARM_UP_PERIOD) -> dict:
    """Factories for the built-in variants, keyed by detector type

    Args:
        warm_up_period: Warm-up used by control charts whose model does not set one

    Returns:
        Mapping of type key to a callable taking a FittedModel
    """
    return {
        ControlChartDetector.TYPE: partial(
            ControlChartDetector.from_model, default_warm_up_period=warm_up_period
        ),
        ConstantThresholdDetector.TYPE: ConstantThresholdDetector.from_model,
    }


__all__ = [
    "AnomalyLevel",
    "AnomalyThresholds",
    "ClassificationResult",
    "ConstantThresholdDetector",
    "ControlChartDetector",
    "DEFAULT_WARM_UP_PERIOD",
    "Detector",
    "DetectorDescriptor",
    "FittedModel",
    "default_factories",
]
