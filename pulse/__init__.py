"""
Pulse: analytics core for API request telemetry.

Statistics, Z-score anomaly verdicts and dense time-bucketed series.
"""

__version__ = "0.1.0"
