"""
Named dashboard periods.

Maps a period string ("1h", "6h", "24h", "7d", "30d") to a query window
ending now and the bucket width used to chart it. Unknown period strings
fall back to the configured default period (24h).
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from pulse.core.config import PeriodSpec, config
from pulse.data.schema import TimePeriod, ensure_utc, utc_now

logger = logging.getLogger(__name__)


def get_time_period(
    period: str,
    now: Optional[datetime] = None,
    periods: Optional[Dict[str, PeriodSpec]] = None,
) -> TimePeriod:
    """
    Resolve a period string into start/end/bucket width.

    Args:
        period: Period name, e.g. "24h"
        now: End of the window (defaults to the current UTC time)
        periods: Period table (defaults to config.periods)

    Returns:
        TimePeriod with end == now and start == now - span
    """
    table = periods if periods is not None else config.periods
    spec = table.get(period)
    if spec is None:
        logger.debug("Unknown period %r, using %s", period, config.default_period)
        spec = table.get(config.default_period) or config.periods[config.default_period]

    end = ensure_utc(now) if now is not None else utc_now()
    start = end - timedelta(minutes=spec.span_minutes)
    return TimePeriod(start=start, end=end, bucket_minutes=spec.bucket_minutes)
