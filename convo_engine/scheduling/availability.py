"""
Offerable slot computation from company business hours.

Business hours arrive as ``{weekday: [{"from": "17", "to": "21"}]}`` and are
never modified here. All hour arithmetic is in 24h integers; times are only
formatted ("6pm") on the way out. Days are always walked Monday..Sunday and
a day is only offered when at least one time matches.
"""

import logging
from typing import Iterable, Optional

from convo_engine.schemas.scheduling_schema import (
    WEEKDAYS,
    BusinessHours,
    BusinessInterval,
    TimeSlot,
)
from convo_engine.scheduling.time_preference import DayPeriod, parse_clock_hour

logger = logging.getLogger(__name__)

# Period windows in 24h hours, [start, end)
MORNING_START = 6
NOON = 12
EVENING_START = 17
LAST_EVENING_HOUR = 21

DEFAULT_MAX_TIMES_PER_DAY = 3
DEFAULT_MAX_DAY_TIMES = 5
DEFAULT_DAY_STEP = 2

_DAY_ABBREVIATIONS: dict[str, str] = {day[:3]: day for day in WEEKDAYS}


def format_hour(hour: int) -> str:
    """24h hour to a readable time: 0 -> "12am", 13 -> "1pm"."""
    if hour == 0:
        return "12am"
    if hour == 12:
        return "12pm"
    if hour < 12:
        return f"{hour}am"
    return f"{hour - 12}pm"


def format_slot_options(slots: list[TimeSlot]) -> str:
    """"Monday at 5pm or 6pm, Tuesday at 7pm"."""
    return ", ".join(f"{slot.day} at {' or '.join(slot.times[:2])}" for slot in slots)


def resolve_weekday(date_text: str) -> Optional[str]:
    """Find the weekday named in free text ("next Tue", "Wednesday the 5th")."""
    lower = date_text.lower()
    for abbreviation, day in _DAY_ABBREVIATIONS.items():
        if abbreviation in lower:
            return day
    return None


def _intervals(business_hours: BusinessHours, day: str) -> list[BusinessInterval]:
    return business_hours.get(day) or []


def _collect(
    business_hours: BusinessHours,
    hours_for_interval,
    max_per_day: int,
    skip_days: Iterable[str] = (),
) -> list[TimeSlot]:
    skipped = {day.lower() for day in skip_days}
    slots: list[TimeSlot] = []
    for day in WEEKDAYS:
        if day in skipped:
            continue
        times: list[str] = []
        for interval in _intervals(business_hours, day):
            for hour in hours_for_interval(interval):
                if len(times) >= max_per_day:
                    break
                times.append(format_hour(hour))
        if times:
            slots.append(TimeSlot(day=day.capitalize(), times=times[:max_per_day]))
    return slots


def slots_for_period(
    business_hours: BusinessHours,
    period: Optional[DayPeriod],
    max_per_day: int = DEFAULT_MAX_TIMES_PER_DAY,
) -> list[TimeSlot]:
    """Hourly times inside a morning/afternoon/evening window.

    With no period, each open interval contributes its midpoint hour.
    """

    def hours(interval: BusinessInterval) -> range:
        start, end = interval.start_hour, interval.end_hour
        if period == DayPeriod.MORNING:
            if start >= NOON:
                return range(0)
            return range(max(start, MORNING_START), min(end, NOON))
        if period == DayPeriod.EVENING:
            if end < EVENING_START:
                return range(0)
            return range(max(start, EVENING_START), min(end, LAST_EVENING_HOUR + 1))
        if period == DayPeriod.AFTERNOON:
            if start > 14 or end < NOON:
                return range(0)
            return range(max(start, NOON), min(end, EVENING_START))
        midpoint = (start + end) // 2
        return range(midpoint, midpoint + 1)

    return _collect(business_hours, hours, max_per_day)


def slots_after_hour(
    business_hours: BusinessHours,
    min_hour: int,
    max_per_day: int = DEFAULT_MAX_TIMES_PER_DAY,
    skip_days: Iterable[str] = (),
) -> list[TimeSlot]:
    """Times strictly later than ``min_hour`` ("later than 6" starts at 7pm)."""

    def hours(interval: BusinessInterval) -> range:
        return range(max(interval.start_hour, min_hour + 1), interval.end_hour)

    return _collect(business_hours, hours, max_per_day, skip_days)


def slots_before_hour(
    business_hours: BusinessHours,
    max_hour: int,
    max_per_day: int = DEFAULT_MAX_TIMES_PER_DAY,
    skip_days: Iterable[str] = (),
) -> list[TimeSlot]:
    """Times strictly earlier than ``max_hour``."""

    def hours(interval: BusinessInterval) -> range:
        return range(interval.start_hour, min(interval.end_hour, max_hour))

    return _collect(business_hours, hours, max_per_day, skip_days)


def times_for_day(
    business_hours: BusinessHours,
    date_text: str,
    max_times: int = DEFAULT_MAX_DAY_TIMES,
    step: int = DEFAULT_DAY_STEP,
) -> list[str]:
    """Sample times on the weekday named in ``date_text``, stepped by ``step`` hours."""
    day = resolve_weekday(date_text)
    if day is None:
        logger.debug("No weekday found in date value '%s'", date_text)
        return []
    times: list[str] = []
    for interval in _intervals(business_hours, day):
        for hour in range(interval.start_hour, interval.end_hour, step):
            if len(times) >= max_times:
                return times
            times.append(format_hour(hour))
    return times


def filter_times(
    times: list[str],
    period: Optional[DayPeriod] = None,
    after_hour: Optional[int] = None,
    before_hour: Optional[int] = None,
) -> list[str]:
    """Keep formatted times that fall in a period and/or strictly inside hour bounds."""
    kept: list[str] = []
    for time_text in times:
        hour = parse_clock_hour(time_text)
        if hour is None:
            continue
        if period == DayPeriod.EVENING and hour < EVENING_START:
            continue
        if period == DayPeriod.MORNING and hour >= NOON:
            continue
        if period == DayPeriod.AFTERNOON and not NOON <= hour < EVENING_START:
            continue
        if after_hour is not None and hour <= after_hour:
            continue
        if before_hour is not None and hour >= before_hour:
            continue
        kept.append(time_text)
    return kept
