"""Wall-clock helpers for the business timezone."""

from datetime import date, datetime, time, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from app.config import settings

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time in settings.timezone as a naive datetime (the storage convention)."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive wall-clock in settings.timezone; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.timezone)).replace(tzinfo=None)
