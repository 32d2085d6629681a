"""
Individuals control chart (X-mR chart) detector.

Tracks the running mean of the observations and the running mean of the moving
ranges between consecutive observations, and derives Shewhart control limits
from them after a warm-up period.

Workflow:
1. Warm-up: the first `warm_up_period` observations (the seed included) are
   recorded and classified UNKNOWN. No limits are reported.
2. Steady state: limits are recomputed on every observation, the current one
   included, then the observation is classified against them.

Levels:
- NORMAL: LCL_X <= x <= UCL_X
- WEAK:   outside the individuals limits, moving range within UCL_R
- STRONG: outside the individuals limits and moving range above UCL_R
"""

from typing import Any

import structlog

from src.core.errors import InvalidModelError

from .base import AnomalyLevel, AnomalyThresholds, ClassificationResult, Detector, FittedModel

logger = structlog.get_logger(__name__)

# Shewhart constants for moving ranges of subgroup size 2
D2 = 1.128
D4 = 3.267
SIGMA_MULTIPLIER = 3.0

DEFAULT_WARM_UP_PERIOD = 25


class ControlChartDetector(Detector):
    """Individuals control chart with online recomputation of the control limits"""

    TYPE = "individuals-control-chart"

    def __init__(self, init_value: float, warm_up_period: int = DEFAULT_WARM_UP_PERIOD):
        """Seed the chart with its first observation

        Args:
            init_value: First observed value, counted as observation 1
            warm_up_period: Number of observations classified UNKNOWN, >= 1
        """
        if isinstance(warm_up_period, bool) or not isinstance(warm_up_period, int):
            raise ValueError(f"warm_up_period must be an integer, got {warm_up_period!r}")
        if warm_up_period < 1:
            raise ValueError(f"warm_up_period must be >= 1, got {warm_up_period}")

        init_value = self.validate_value(init_value)

        self.init_value = init_value
        self.warm_up_period = warm_up_period

        self.n = 1
        self.previous_value = init_value
        self.total = init_value
        self.moving_range_total = 0.0

        self.upper_control_limit_r: float | None = None
        self.mean: float | None = None
        self.upper_control_limit_x: float | None = None
        self.lower_control_limit_x: float | None = None

    @classmethod
    def from_model(
        cls, model: FittedModel, default_warm_up_period: int = DEFAULT_WARM_UP_PERIOD
    ) -> "ControlChartDetector":
        """Build a chart from fitted parameters

        Expects `init_value` in the model params; `warm_up_period` falls back to
        the configured default when absent.
        """
        params = model.params
        if "init_value" not in params:
            raise InvalidModelError(f"Model for detector {model.detector_id} has no init_value")

        try:
            warm_up_period = parse_warm_up_period(
                params.get("warm_up_period", default_warm_up_period)
            )
            detector = cls(float(params["init_value"]), warm_up_period)
        except (TypeError, ValueError) as e:
            raise InvalidModelError(
                f"Invalid control chart params for detector {model.detector_id}: {e}"
            ) from e

        logger.debug(
            "Control chart initialized",
            detector_id=str(model.detector_id),
            init_value=detector.init_value,
            warm_up_period=detector.warm_up_period,
        )
        return detector

    @property
    def detector_type(self) -> str:
        return self.TYPE

    def get_params(self) -> dict[str, Any]:
        return {"init_value": self.init_value, "warm_up_period": self.warm_up_period}

    @property
    def in_warm_up(self) -> bool:
        return self.n <= self.warm_up_period

    def classify(self, value: float) -> ClassificationResult:
        observed = self.validate_value(value)

        moving_range = abs(observed - self.previous_value)
        self.n += 1
        self.total += observed
        self.moving_range_total += moving_range
        self.previous_value = observed

        if self.in_warm_up:
            return ClassificationResult(
                level=AnomalyLevel.UNKNOWN,
                value=observed,
                details={"moving_range": moving_range, "observations": self.n},
            )

        self._update_limits()

        if self.lower_control_limit_x <= observed <= self.upper_control_limit_x:
            level = AnomalyLevel.NORMAL
        elif moving_range > self.upper_control_limit_r:
            level = AnomalyLevel.STRONG
        else:
            level = AnomalyLevel.WEAK

        return ClassificationResult(
            level=level,
            value=observed,
            thresholds=AnomalyThresholds(
                upper_weak=self.upper_control_limit_x,
                lower_weak=self.lower_control_limit_x,
            ),
            details={
                "moving_range": moving_range,
                "observations": self.n,
                "mean": self.mean,
                "upper_control_limit_r": self.upper_control_limit_r,
                "upper_control_limit_x": self.upper_control_limit_x,
                "lower_control_limit_x": self.lower_control_limit_x,
            },
        )

    def _update_limits(self) -> None:
        mean_moving_range = self.moving_range_total / (self.n - 1)
        sigma = mean_moving_range / D2

        self.mean = self.total / self.n
        self.upper_control_limit_r = D4 * mean_moving_range
        self.upper_control_limit_x = self.mean + SIGMA_MULTIPLIER * sigma
        self.lower_control_limit_x = self.mean - SIGMA_MULTIPLIER * sigma


def parse_warm_up_period(raw: Any) -> int:
    """Read a warm-up period from model params, refusing fractional values"""
    if isinstance(raw, bool):
        raise ValueError(f"warm_up_period must be an integer, got {raw!r}")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValueError(f"warm_up_period must be an integer, got {raw!r}")
        return int(raw)
    if isinstance(raw, (int, str)):
        return int(raw)
    raise TypeError(f"warm_up_period must be an integer, got {raw!r}")
