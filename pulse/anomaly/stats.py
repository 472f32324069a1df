"""
Statistics engine.

Pure functions over finite numeric samples: percentile, mean, population
standard deviation and a composite summary. Reductions run left to right
with the builtin sum() so results are reproducible bit for bit.

Non-finite inputs (NaN, +/-inf) and percentiles outside [0, 100] are caller
errors and raise InvalidInputError. Empty samples are not errors: they
produce zeros.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from pulse.core.exceptions import InvalidInputError

from .schema import StatsSummary


def require_finite(values: Iterable[float], name: str = "values") -> None:
    """Raise InvalidInputError if any value is NaN or infinite."""
    for index, value in enumerate(values):
        if not math.isfinite(value):
            raise InvalidInputError(f"{name}[{index}] is not finite: {value!r}")


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round to `digits` decimals with ties going towards +infinity.

    Display values use this instead of round(), which rounds ties to even
    (round(2.5) == 2 but round_half_up(2.5) == 3.0). Values too large to
    scale are returned unchanged; they carry no fractional digits anyway.
    """
    factor = 10 ** digits
    scaled = value * factor
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled + 0.5) / factor


def plain_number(value: float) -> str:
    """
    Format a number for messages without losing digits.

    Integral values print without a decimal point (1234567.0 -> '1234567');
    everything else uses the shortest round-tripping repr.
    """
    if math.isfinite(value) and float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value))


def _scaled(values: Sequence[float]):
    scale = max(abs(v) for v in values)
    return scale, [v / scale for v in values]


def mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean; 0.0 for an empty sample.

    If the running sum overflows, the mean is taken over values scaled down
    by their largest magnitude, so finite input always gives a finite mean.
    """
    if not values:
        return 0.0
    require_finite(values)
    total = sum(values)
    if math.isfinite(total):
        return total / len(values)

    scale, scaled = _scaled(values)
    return scale * (sum(scaled) / len(scaled))


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (divisor N); 0.0 for an empty sample."""
    if not values:
        return 0.0
    m = mean(values)
    variance = sum((v - m) * (v - m) for v in values) / len(values)
    if math.isfinite(variance):
        return math.sqrt(variance)

    # squared deviations overflowed; std <= max |v| so the scaled result fits
    scale, scaled = _scaled(values)
    sm = sum(scaled) / len(scaled)
    return scale * math.sqrt(sum((v - sm) * (v - sm) for v in scaled) / len(scaled))


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Linear-interpolation percentile of an ascending sequence.

    Args:
        sorted_values: Values already sorted ascending (not re-sorted here)
        p: Percentile in [0, 100]

    Returns:
        The interpolated value, or 0 for an empty sequence.

    Example:
        percentile([1, 2, ..., 10], 50) == 5.5
    """
    if not 0 <= p <= 100:
        raise InvalidInputError(f"percentile must be within [0, 100], got {p!r}")
    require_finite(sorted_values, "sorted_values")

    if not sorted_values:
        return 0

    index = (p / 100) * (len(sorted_values) - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return sorted_values[lower]

    weight = index - lower
    low, high = sorted_values[lower], sorted_values[upper]
    result = low * (1 - weight) + high * weight
    if not math.isfinite(result):
        # rounding pushed a value near the float limit over it
        result = (low / 2 * (1 - weight) + high / 2 * weight) * 2
    return result


def calculate_stats(values: Sequence[float]) -> StatsSummary:
    """
    Compute a StatsSummary for an unordered sample.

    The input is never mutated; a sorted copy is used for percentiles.
    Mean and stddev are rounded half-up to 2 decimals for display stability.
    """
    if not values:
        return StatsSummary()

    require_finite(values)
    ordered = sorted(values)
    median = percentile(ordered, 50)

    return StatsSummary(
        mean=round_half_up(mean(values), 2),
        median=median,
        stddev=round_half_up(population_std(values), 2),
        p50=median,
        p95=percentile(ordered, 95),
        p99=percentile(ordered, 99),
        min=ordered[0],
        max=ordered[-1],
    )
