"""
Constant threshold detector.

Compares each observation against fixed weak and strong thresholds taken from
the fitted model. Holds no state besides its thresholds.
"""

from typing import Any

from src.core.errors import InvalidModelError

from .base import AnomalyLevel, AnomalyThresholds, ClassificationResult, Detector, FittedModel

THRESHOLD_KEYS = ("upper_strong", "upper_weak", "lower_weak", "lower_strong")


class ConstantThresholdDetector(Detector):
    """Fixed thresholds on either or both tails"""

    TYPE = "constant-threshold"

    def __init__(self, thresholds: AnomalyThresholds):
        values = [getattr(thresholds, key) for key in THRESHOLD_KEYS]
        if all(value is None for value in values):
            raise ValueError("At least one threshold is required")

        upper = [v for v in (thresholds.upper_weak, thresholds.upper_strong) if v is not None]
        lower = [v for v in (thresholds.lower_strong, thresholds.lower_weak) if v is not None]
        if upper != sorted(upper) or lower != sorted(lower):
            raise ValueError(f"Strong thresholds must lie beyond weak thresholds: {thresholds}")

        self.thresholds = thresholds

    @classmethod
    def from_model(cls, model: FittedModel) -> "ConstantThresholdDetector":
        params = model.params
        try:
            thresholds = AnomalyThresholds(
                **{
                    key: float(params[key])
                    for key in THRESHOLD_KEYS
                    if params.get(key) is not None
                }
            )
            return cls(thresholds)
        except (TypeError, ValueError) as e:
            raise InvalidModelError(
                f"Invalid threshold params for detector {model.detector_id}: {e}"
            ) from e

    @property
    def detector_type(self) -> str:
        return self.TYPE

    def get_params(self) -> dict[str, Any]:
        return self.thresholds.to_dict()

    def classify(self, value: float) -> ClassificationResult:
        observed = self.validate_value(value)
        t = self.thresholds

        if (t.upper_strong is not None and observed >= t.upper_strong) or (
            t.lower_strong is not None and observed <= t.lower_strong
        ):
            level = AnomalyLevel.STRONG
        elif (t.upper_weak is not None and observed >= t.upper_weak) or (
            t.lower_weak is not None and observed <= t.lower_weak
        ):
            level = AnomalyLevel.WEAK
        else:
            level = AnomalyLevel.NORMAL

        return ClassificationResult(level=level, value=observed, thresholds=t)
