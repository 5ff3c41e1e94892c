"""
Rapla Datetime Utilities

This module provides the date and time parsing Rapla's calendar view needs:
- parse_week_header: Parse a week header such as "Mo 18.03." into (day, month)
- parse_time_range: Parse "08:00\xa0-10:00" into start and end times
- lookback_date: The Berlin-local date a number of days in the past
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from rapla_proxy.constants import BERLIN_TIMEZONE

NBSP = "\xa0"


def parse_week_header(header: str) -> Tuple[int, int]:
    """
    Parse the date part of a week header.

    Args:
        header: Header text, a weekday abbreviation followed by "DD.MM."

    Returns:
        Tuple of (day, month)
    """
    parts = header.replace(NBSP, " ").split()
    if len(parts) < 2:
        raise ValueError(f"Unexpected week header: {header!r}")

    day, month = parts[1].strip(".").split(".")[:2]
    return int(day), int(month)


def parse_time_range(raw: str) -> Tuple[time, time]:
    start_raw, separator, end_raw = raw.replace(NBSP, " ").partition("-")
    if not separator:
        raise ValueError(f"Unexpected time range: {raw!r}")

    start = datetime.strptime(start_raw.strip(), "%H:%M").time()
    end = datetime.strptime(end_raw.strip(), "%H:%M").time()
    return start, end


def lookback_date(days: int, now: Optional[datetime] = None) -> date:
    """
    Compute the first day Rapla should render.

    Args:
        days: Number of days to look back
        now: Reference time, defaults to the current time in Berlin

    Returns:
        The Berlin-local date ``days`` days before ``now``
    """
    if now is None:
        now = datetime.now(BERLIN_TIMEZONE)
    elif now.tzinfo is None:
        now = BERLIN_TIMEZONE.localize(now)
    else:
        now = now.astimezone(BERLIN_TIMEZONE)

    return (now - timedelta(days=days)).date()
