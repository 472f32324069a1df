"""
Application configuration for Pulse.

Provides environment-aware settings with conservative defaults. Anomaly
thresholds, the minimum history size and the period presets are all
configurable so none of them is a hard-coded "magic number".
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class AnomalyThresholds(BaseModel):
	"""
	Z-score thresholds per metric family.

	Rationale:
	- Error spikes matter at smaller deviations, so error_rate is the most sensitive.
	- Traffic is naturally bursty, so traffic is the least sensitive.
	"""

	default: float = Field(2.5, gt=0.0, description="Generic z-score threshold")
	response_time: float = Field(2.5, gt=0.0, description="Latency anomalies")
	error_rate: float = Field(2.0, gt=0.0, description="Error-rate anomalies")
	traffic: float = Field(3.0, gt=0.0, description="Request-volume anomalies")


class AnomalyConfig(BaseModel):
	"""
	Anomaly detection configuration.

	Notes:
	- min_history: baseline points required before a verdict is attempted.
	"""

	min_history: int = Field(5, ge=1)
	thresholds: AnomalyThresholds = AnomalyThresholds()


class PeriodSpec(BaseModel):
	"""A dashboard period: total span and bucket width, in minutes."""

	span_minutes: int = Field(..., gt=0)
	bucket_minutes: int = Field(..., gt=0)


class RateLimitConfig(BaseModel):
	"""
	Fixed-window admission limits.

	Notes:
	- max_requests/window_seconds apply to dashboard clients.
	- ingest_max_requests applies to API-key telemetry ingestion.
	"""

	max_requests: int = Field(100, ge=1)
	window_seconds: float = Field(60.0, gt=0.0)
	ingest_max_requests: int = Field(1000, ge=1)


class AlertConfig(BaseModel):
	"""
	Alert evaluation configuration.

	Notes:
	- history_buckets: buckets (including the current one) fed to the detector.
	- bucket_minutes: width of each evaluation bucket.
	- critical_ratio: value/threshold ratio at which a breach becomes critical.
	- error_status_floor: lowest HTTP status counted as an error.
	"""

	history_buckets: int = Field(24, ge=2)
	bucket_minutes: int = Field(60, gt=0)
	critical_ratio: float = Field(1.5, ge=1.0)
	error_status_floor: int = Field(400, ge=100, le=599)


def _default_periods() -> Dict[str, PeriodSpec]:
	return {
		"1h": PeriodSpec(span_minutes=60, bucket_minutes=5),
		"6h": PeriodSpec(span_minutes=6 * 60, bucket_minutes=15),
		"24h": PeriodSpec(span_minutes=24 * 60, bucket_minutes=60),
		"7d": PeriodSpec(span_minutes=7 * 24 * 60, bucket_minutes=360),
		"30d": PeriodSpec(span_minutes=30 * 24 * 60, bucket_minutes=1440),
	}


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.

	Nested values use a double underscore, e.g. PULSE_ANOMALY__MIN_HISTORY=10.
	"""

	model_config = SettingsConfigDict(
		env_prefix="PULSE_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	anomaly: AnomalyConfig = AnomalyConfig()
	periods: Dict[str, PeriodSpec] = Field(default_factory=_default_periods)
	default_period: str = "24h"
	rate_limit: RateLimitConfig = RateLimitConfig()
	alerts: AlertConfig = AlertConfig()

	def model_post_init(self, __context: object) -> None:
		if self.default_period not in self.periods:
			raise ConfigurationError(
				f"default_period {self.default_period!r} is not one of {sorted(self.periods)}"
			)
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
