"""Time parsing and interval arithmetic for scheduling"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Optional

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def for_date(cls, day: date) -> "DayOfWeek":
        return WEEKDAYS[day.weekday()]

    @property
    def order(self) -> int:
        return WEEKDAYS.index(self)


WEEKDAYS = list(DayOfWeek)


@dataclass(frozen=True)
class BusyInterval:
    """Half-open [start, end) range that a new booking must not overlap"""

    start: datetime
    end: datetime
    source: str = "local"
    reference: Optional[str] = None


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string. Raises ValueError."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValueError("Invalid date format. Expected YYYY-MM-DD")
    return date.fromisoformat(value)


def parse_time(value: str) -> time:
    """Parse a strict 24h HH:MM string. Raises ValueError."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError("Invalid time format. Expected HH:MM")
    hours, minutes = (int(part) for part in value.split(":"))
    if hours > 23 or minutes > 59:
        raise ValueError("Invalid time format. Expected HH:MM")
    return time(hours, minutes)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def to_interval(day: date, start: time, duration_minutes: int) -> tuple[datetime, datetime]:
    start_dt = datetime.combine(day, start)
    return start_dt, start_dt + timedelta(minutes=duration_minutes)


def intervals_overlap(start: datetime, end: datetime, busy_start: datetime, busy_end: datetime) -> bool:
    """Half-open intersection: touching boundaries do not overlap"""
    return start < busy_end and end > busy_start


def overlaps_any(start: datetime, end: datetime, busy: Iterable[BusyInterval]) -> bool:
    return any(intervals_overlap(start, end, b.start, b.end) for b in busy)


def generate_grid(
    day: date, opening: time, closing: time, duration_minutes: int, step_minutes: int
) -> list[time]:
    """Every start time from opening, step apart, whose [t, t+duration) fits before closing"""
    if duration_minutes <= 0 or step_minutes <= 0:
        return []

    slots = []
    current = datetime.combine(day, opening)
    close_dt = datetime.combine(day, closing)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    while current + duration <= close_dt:
        slots.append(current.time())
        current += step
    return slots


def clamp_to_day(day: date, start: datetime, end: datetime) -> Optional[tuple[datetime, datetime]]:
    """Clip an interval to [day 00:00, next day 00:00); None when it misses the day"""
    day_start = datetime.combine(day, time.min)
    day_end = day_start + timedelta(days=1)
    start = max(start, day_start)
    end = min(end, day_end)
    if end <= start:
        return None
    return start, end
