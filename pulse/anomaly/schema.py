"""
Schema definitions for statistics and anomaly verdicts.

All outputs are derived, immutable snapshots. They are recomputed from
source samples on demand and never stored or mutated by the core.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Direction(str, Enum):
    """Which side of the baseline an observation falls on."""

    HIGH = "high"
    LOW = "low"
    NORMAL = "normal"


class StatsSummary(BaseModel):
    """
    Summary statistics for a finite sample.

    Fields:
    - mean/stddev: population statistics, rounded to 2 decimals
    - median/p50/p95/p99: linear-interpolation percentiles
    - min/max: sample extremes

    An empty sample yields all-zero fields.
    """

    model_config = ConfigDict(frozen=True)

    mean: float = 0.0
    median: float = 0.0
    stddev: float = 0.0
    p50: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    min: float = 0.0
    max: float = 0.0


class AnomalyVerdict(BaseModel):
    """
    Result of comparing one observation against a historical baseline.

    Fields:
    - is_anomaly: True if |z| strictly exceeds the threshold
    - score: bounded severity proxy in [0.0, 1.0], not a probability
    - direction: high, low or normal
    - threshold: z-score threshold that was applied
    - message: human-readable summary used for alert text
    - z_score: signed z-score (None when the baseline was too short or flat)
    """

    model_config = ConfigDict(frozen=True)

    is_anomaly: bool
    score: float = Field(ge=0.0, le=1.0)
    direction: Direction
    threshold: float
    message: str
    z_score: Optional[float] = None
