"""Automatic period resolution.

when the user leaves the period on "auto" we pick the finest granularity that
is both cheap enough and still retained by the api:

  - volume: keep each series under MAX_DATAPOINTS points
  - retention: high resolution data ages out - after 15 days only 5 minute
    points exist, after 63 days only hourly, after 455 days only 6 hourly

the answer is the coarser of the two.
"""

import logging
import math
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

PERIODS = (60, 300, 900, 3600, 21600, 86400)

MAX_DATAPOINTS = 2000

# (data older than, finest period still available), oldest tier first
RETENTION_TIERS = (
    (timedelta(days=455), 21600),
    (timedelta(days=63), 3600),
    (timedelta(days=15), 300),
)


def volume_period(duration: timedelta) -> int:
    """Smallest period keeping the window under MAX_DATAPOINTS points."""
    datapoints = math.ceil(duration.total_seconds() / MAX_DATAPOINTS)
    for period in PERIODS:
        if datapoints <= period:
            return period
    return PERIODS[-1]


def retention_period(age: timedelta) -> int:
    """Finest period the api still retains for data this old."""
    for older_than, period in RETENTION_TIERS:
        if age > older_than:
            return period
    return PERIODS[0]


def resolve_period(duration: timedelta, age: timedelta) -> int:
    """Resolve the automatic period for a window.

    Args:
        duration: Window length (to - from).
        age: How far back the window starts (now - from).

    Returns:
        Period in seconds, always one of PERIODS.
    """
    return max(volume_period(duration), retention_period(age))


def auto_period(start: datetime, end: datetime, now: datetime | None = None) -> int:
    """Resolve the automatic period for an absolute window."""
    if now is None:
        # match the window's awareness so the subtraction works for naive datetimes too
        now = datetime.now(start.tzinfo)
    period = resolve_period(end - start, now - start)
    logger.debug("auto period for %s -> %s is %ss", start, end, period)
    return period
