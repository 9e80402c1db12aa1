"""
Monitoring-window scheduler.

A monitoring day runs from the configured start time for twelve hours. At
most two checks are allowed per day: the first any time inside the day, the
second no earlier than start+7h and at least four hours after the first.
All arithmetic happens in one fixed time zone so that every device agrees on
where a day begins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from .config import DEFAULT_START_TIME, MONITORING_TIMEZONE

DAY_LENGTH = timedelta(hours=12)
SECOND_WINDOW_OFFSET = timedelta(hours=7)
MIN_GAP = timedelta(hours=4)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class WindowState(str, Enum):
    BEFORE_WINDOW = "BEFORE_WINDOW"
    FIRST_WINDOW_OPEN = "FIRST_WINDOW_OPEN"
    WAITING_SECOND_WINDOW = "WAITING_SECOND_WINDOW"
    SECOND_WINDOW_OPEN = "SECOND_WINDOW_OPEN"
    AFTER_DAY_END = "AFTER_DAY_END"


@dataclass(frozen=True)
class MonitoringTiming:
    can_monitor: bool
    next_monitoring_time: str  # HH:MM
    time_remaining: Optional[timedelta]
    state: WindowState

    @property
    def time_remaining_text(self) -> Optional[str]:
        if self.time_remaining is None:
            return None
        return format_time_remaining(self.time_remaining)


def parse_start_time(value: str) -> time:
    """Parse an ``HH:MM`` string; anything else is a configuration error."""
    m = _HHMM.match(value or "")
    if not m:
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    return time(int(m.group(1)), int(m.group(2)))


def format_hhmm(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def format_time_remaining(delta: timedelta) -> str:
    total_minutes = max(0, int(delta.total_seconds() // 60))
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def _localize(now: datetime, tz: ZoneInfo) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def _at(day: date, t: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, t, tzinfo=tz)


def _day_start(now: datetime, start: time, tz: ZoneInfo) -> datetime:
    """Start of the monitoring day `now` belongs to (or the one about to begin)."""
    today = _at(now.date(), start, tz)
    if now >= today:
        return today
    yesterday = _at(now.date() - timedelta(days=1), start, tz)
    # late start times push the day past midnight
    if now < yesterday + DAY_LENGTH:
        return yesterday
    return today


def monitoring_day(now: datetime, start_time: str = DEFAULT_START_TIME, tz: str = MONITORING_TIMEZONE) -> date:
    """Calendar date of the monitoring day that owns `now`."""
    zone = ZoneInfo(tz)
    return _day_start(_localize(now, zone), parse_start_time(start_time), zone).date()


def _defer_to_tomorrow(now: datetime, day_start: datetime) -> MonitoringTiming:
    tomorrow = day_start + timedelta(days=1)
    return MonitoringTiming(
        can_monitor=False,
        next_monitoring_time=format_hhmm(tomorrow),
        time_remaining=tomorrow - now,
        state=WindowState.AFTER_DAY_END,
    )


def evaluate(
    now: datetime,
    start_time: str = DEFAULT_START_TIME,
    last_monitored_time_today: Optional[str] = None,
    tz: str = MONITORING_TIMEZONE,
) -> MonitoringTiming:
    """
    Decide whether a new observation may be recorded at `now`.

    `last_monitored_time_today` is the HH:MM of the latest check belonging to
    the current monitoring day, or None when there has been none.
    """
    zone = ZoneInfo(tz)
    now = _localize(now, zone)
    start = parse_start_time(start_time)

    day_start = _day_start(now, start, zone)
    day_end = day_start + DAY_LENGTH

    if now < day_start:
        return MonitoringTiming(
            can_monitor=False,
            next_monitoring_time=format_hhmm(day_start),
            time_remaining=day_start - now,
            state=WindowState.BEFORE_WINDOW,
        )

    if now >= day_end:
        return _defer_to_tomorrow(now, day_start)

    if last_monitored_time_today is None:
        return MonitoringTiming(
            can_monitor=True,
            next_monitoring_time=format_hhmm(day_start),
            time_remaining=None,
            state=WindowState.FIRST_WINDOW_OPEN,
        )

    last_checked = _at(day_start.date(), parse_start_time(last_monitored_time_today), zone)
    if last_checked < day_start:
        last_checked += timedelta(days=1)

    second_window_start = day_start + SECOND_WINDOW_OFFSET
    if last_checked >= second_window_start:
        return _defer_to_tomorrow(now, day_start)

    next_allowed = max(second_window_start, last_checked + MIN_GAP)
    if next_allowed >= day_end:
        return _defer_to_tomorrow(now, day_start)

    if now < next_allowed:
        return MonitoringTiming(
            can_monitor=False,
            next_monitoring_time=format_hhmm(next_allowed),
            time_remaining=next_allowed - now,
            state=WindowState.WAITING_SECOND_WINDOW,
        )

    return MonitoringTiming(
        can_monitor=True,
        next_monitoring_time=format_hhmm(next_allowed),
        time_remaining=None,
        state=WindowState.SECOND_WINDOW_OPEN,
    )


def priority_key(timing: MonitoringTiming):
    """Sort key: pigs that can be monitored now first, then soonest window."""
    remaining = timing.time_remaining if timing.time_remaining is not None else timedelta(0)
    return (not timing.can_monitor, remaining)
