"""
Date parsing and formatting for entry metadata.

The form accepts a free-form date. `normalize_date` does a best-effort
parse in the local time zone and falls back to today; the result is
rendered as a Typst `datetime(...)` constructor.
"""
from __future__ import annotations

import datetime as dt
import re
from email.utils import parsedate_to_datetime
from typing import Optional

from rich.console import Console

err_console = Console(stderr=True, soft_wrap=True)

_RELATIVE_RE = re.compile(r"^(\d+)\s+(day|week)s?\s+ago$")
_FUTURE_RE = re.compile(r"^in\s+(\d+)\s+(day|week)s?$")
_TIMESTAMP_RE = re.compile(r"^\d{10}(\d{3})?$")

_NAIVE_FORMATS = (
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %Y",
    "%b %Y",
)


def _local_date(value: dt.datetime) -> dt.date:
    """Calendar date of `value` in the local time zone."""
    if value.tzinfo is None:
        # Naive wall-clock time: take the earliest local instant (fold=0)
        value = value.replace(fold=0)
        return value.date()
    return value.astimezone().date()


def parse_human_date(text: str, today: Optional[dt.date] = None) -> dt.date:
    """
    Parse a loosely formatted date.

    Accepts relative words (today, now, yesterday, tomorrow, "3 days ago",
    "in 2 weeks"), unix timestamps, ISO-8601 dates and datetimes, RFC 2822
    and a handful of common written forms ("March 7, 2024", "07/03/2024").

    Raises ValueError if nothing matches.
    """
    today = today or dt.date.today()
    s = " ".join(text.strip().split())
    low = s.lower()
    if not s:
        raise ValueError("empty date")

    if low in {"today", "now"}:
        return today
    if low == "yesterday":
        return today - dt.timedelta(days=1)
    if low == "tomorrow":
        return today + dt.timedelta(days=1)

    for regex, sign in ((_RELATIVE_RE, -1), (_FUTURE_RE, 1)):
        m = regex.match(low)
        if m:
            count = int(m.group(1)) * (7 if m.group(2) == "week" else 1)
            return today + sign * dt.timedelta(days=count)

    if _TIMESTAMP_RE.match(s):
        seconds = int(s) / (1000 if len(s) == 13 else 1)
        return dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc).astimezone().date()

    iso = s[:-1] + "+00:00" if s.endswith(("Z", "z")) else s
    try:
        return _local_date(dt.datetime.fromisoformat(iso))
    except ValueError:
        pass

    try:
        return _local_date(parsedate_to_datetime(s))
    except (TypeError, ValueError, IndexError):
        pass

    for fmt in _NAIVE_FORMATS:
        try:
            return _local_date(dt.datetime.strptime(s, fmt))
        except ValueError:
            continue

    raise ValueError(f"Unrecognised date: {text!r}")


def normalize_date(text: str, today: Optional[dt.date] = None) -> dt.date:
    """Parse `text`, falling back to today with a diagnostic on failure."""
    today = today or dt.date.today()
    try:
        return parse_human_date(text, today=today)
    except (ValueError, OverflowError, OSError):
        err_console.print("failed to parse date!", markup=False)
        return today


def format_typst_datetime(d: dt.date) -> str:
    """Render `d` as `datetime(year: YYYY, month: MM, day: DD)`."""
    return f"datetime(year: {d.year:04d}, month: {d.month:02d}, day: {d.day:02d})"
