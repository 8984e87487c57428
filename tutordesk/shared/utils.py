"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from tutordesk.core.config import get_settings


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def platform_now() -> datetime:
    """Return naive wall-clock time in the platform timezone.

    Session dates and times are stored without timezone, so every comparison
    against them goes through this clock.
    """
    zone = ZoneInfo(get_settings().platform_timezone)
    return datetime.now(zone).replace(tzinfo=None)


def session_start(meeting_date: date, meeting_time: time) -> datetime:
    """Combine a session's calendar day and time-of-day."""
    return datetime.combine(meeting_date, meeting_time)
