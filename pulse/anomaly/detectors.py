"""
Z-score anomaly detection.

One parameterized primitive compares a current observation against a
historical baseline. The metric-family wrappers only pick a threshold:
- response time: 2.5
- error rate: 2.0
- traffic volume: 3.0

Policy (kept for compatibility, tunable through config):
- fewer than min_history baseline points -> "insufficient data", never anomalous
- flat baseline (stddev == 0) -> any deviation is anomalous with score 1
- |z| == threshold is not anomalous (strict comparison)
- any finite input yields a verdict; score stays within [0, 1] even when
  the baseline sits near the float limits
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from pulse.core.config import config
from pulse.core.exceptions import InvalidInputError

from .schema import AnomalyVerdict, Direction
from .stats import mean, plain_number, population_std, require_finite

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_MESSAGE = "Insufficient historical data for anomaly detection"


@dataclass(frozen=True)
class ZScoreDetector:
    """
    Stateless z-score classifier.

    Holds only its parameters; every detect() call is independent.
    """

    threshold: float
    min_history: int = 5

    def __post_init__(self) -> None:
        if not math.isfinite(self.threshold) or self.threshold <= 0:
            raise InvalidInputError(f"z threshold must be a positive number, got {self.threshold!r}")
        if self.min_history < 1:
            raise InvalidInputError(f"min_history must be >= 1, got {self.min_history!r}")

    def detect(self, current_value: float, historical_values: Sequence[float]) -> AnomalyVerdict:
        require_finite([current_value], "current_value")
        require_finite(historical_values, "historical_values")

        if len(historical_values) < self.min_history:
            return AnomalyVerdict(
                is_anomaly=False,
                score=0.0,
                direction=Direction.NORMAL,
                threshold=self.threshold,
                message=INSUFFICIENT_DATA_MESSAGE,
            )

        baseline_mean = mean(historical_values)
        baseline_std = population_std(historical_values)

        if baseline_std == 0:
            return self._flat_baseline_verdict(current_value, baseline_mean)

        deviation = current_value - baseline_mean
        if math.isinf(deviation):
            z_score = (current_value / 2 - baseline_mean / 2) / baseline_std * 2
        else:
            z_score = deviation / baseline_std
        abs_z = abs(z_score)
        is_anomaly = abs_z > self.threshold

        if z_score > self.threshold:
            direction = Direction.HIGH
        elif z_score < -self.threshold:
            direction = Direction.LOW
        else:
            direction = Direction.NORMAL

        if is_anomaly:
            message = f"Anomaly detected: Z-score {z_score:.2f} exceeds threshold ±{plain_number(self.threshold)}"
            logger.debug("z=%.3f mean=%.3f std=%.3f -> %s", z_score, baseline_mean, baseline_std, direction.value)
        else:
            message = f"Normal: Z-score {z_score:.2f} within threshold ±{plain_number(self.threshold)}"

        return AnomalyVerdict(
            is_anomaly=is_anomaly,
            score=min(abs_z / (self.threshold * 2), 1.0),
            direction=direction,
            threshold=self.threshold,
            message=message,
            z_score=z_score,
        )

    def _flat_baseline_verdict(self, current_value: float, baseline_mean: float) -> AnomalyVerdict:
        if current_value == baseline_mean:
            return AnomalyVerdict(
                is_anomaly=False,
                score=0.0,
                direction=Direction.NORMAL,
                threshold=self.threshold,
                message="Value matches constant baseline",
            )

        direction = Direction.HIGH if current_value > baseline_mean else Direction.LOW
        return AnomalyVerdict(
            is_anomaly=True,
            score=1.0,
            direction=direction,
            threshold=self.threshold,
            message=f"Value {plain_number(current_value)} differs from constant baseline {plain_number(baseline_mean)}",
        )


def detect_anomaly_zscore(
    current_value: float,
    historical_values: Sequence[float],
    z_threshold: Optional[float] = None,
    min_history: Optional[int] = None,
) -> AnomalyVerdict:
    """
    Classify current_value against historical_values by z-score.

    Args:
        current_value: Observation to classify
        historical_values: Baseline sample (population statistics)
        z_threshold: |z| above which the value is anomalous (default 2.5)
        min_history: Baseline size needed for a verdict (default 5)

    Returns:
        AnomalyVerdict
    """
    detector = ZScoreDetector(
        threshold=config.anomaly.thresholds.default if z_threshold is None else z_threshold,
        min_history=config.anomaly.min_history if min_history is None else min_history,
    )
    return detector.detect(current_value, historical_values)


def detect_response_time_anomaly(
    current_avg_ms: float, historical_avgs_ms: Sequence[float]
) -> AnomalyVerdict:
    """Detect response time anomalies for an endpoint."""
    return detect_anomaly_zscore(
        current_avg_ms, historical_avgs_ms, config.anomaly.thresholds.response_time
    )


def detect_error_rate_anomaly(
    current_error_rate: float, historical_error_rates: Sequence[float]
) -> AnomalyVerdict:
    """Detect error rate anomalies."""
    return detect_anomaly_zscore(
        current_error_rate, historical_error_rates, config.anomaly.thresholds.error_rate
    )


def detect_traffic_anomaly(
    current_count: float, historical_counts: Sequence[float]
) -> AnomalyVerdict:
    """Detect traffic volume anomalies."""
    return detect_anomaly_zscore(
        current_count, historical_counts, config.anomaly.thresholds.traffic
    )
