"""
Anomaly module: statistics engine and z-score anomaly detection.

Pure, stateless functions: summaries over numeric samples and verdicts
for a current value against a historical baseline.
"""

from .detectors import (
	ZScoreDetector,
	detect_anomaly_zscore,
	detect_error_rate_anomaly,
	detect_response_time_anomaly,
	detect_traffic_anomaly,
)
from .schema import AnomalyVerdict, Direction, StatsSummary
from .stats import calculate_stats, mean, percentile, population_std, round_half_up

__all__ = [
	"AnomalyVerdict",
	"Direction",
	"StatsSummary",
	"ZScoreDetector",
	"calculate_stats",
	"detect_anomaly_zscore",
	"detect_error_rate_anomaly",
	"detect_response_time_anomaly",
	"detect_traffic_anomaly",
	"mean",
	"percentile",
	"population_std",
	"round_half_up",
]
