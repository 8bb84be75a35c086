"""Duration arithmetic shared by the state machines and the aggregation engine."""

import math
from datetime import datetime


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def round_minutes(minutes: float) -> int:
    """Round to the nearest whole minute, halves away from zero for positive values."""
    return math.floor(minutes + 0.5)


def to_hours(minutes: float) -> float:
    """Convert minutes to hours rounded to two decimals."""
    return math.floor(minutes / 60 * 100 + 0.5) / 100
