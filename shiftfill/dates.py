"""Calendar-day normalization.

Every holiday, leave and period comparison goes through ``compare_key`` so
that a date-only field and a timestamped field describing the same day never
compare unequal because of a UTC offset.
"""

import calendar
import math
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidDate

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ISO_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_DOTTED_DATE_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")


def _build_date(year: int, month: int, day: int, raw: object) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(raw) from exc


def _parse_datetime(text: str) -> datetime:
    candidate = text
    if candidate.endswith(("Z", "z")):
        candidate = f"{candidate[:-1]}+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise InvalidDate(text, "Invalid date format.") from exc


def _localize(value: datetime, tz_name: Optional[str]) -> datetime:
    if not tz_name or value.tzinfo is None:
        return value
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidDate(tz_name, "Unknown timezone.") from exc
    return value.astimezone(zone)


def normalize(value: object, tz_name: Optional[str] = None) -> date:
    """Return the calendar day a raw date value describes.

    Accepts ``date``/``datetime`` objects and strings in ``YYYY-MM-DD``,
    ``D.M.YYYY`` or ISO-8601 datetime form (``Z`` or numeric offsets allowed).
    A datetime keeps the wall-clock day it carries; when ``tz_name`` is set,
    timezone-aware values are first converted to that zone. Anything that
    is not a calendar date raises ``InvalidDate``.
    """
    if value is None or isinstance(value, bool):
        raise InvalidDate(value)
    if isinstance(value, datetime):
        return _localize(value, tz_name).date()
    if isinstance(value, date):
        return value
    if isinstance(value, float) and math.isnan(value):
        raise InvalidDate(value)
    if not isinstance(value, str):
        raise InvalidDate(value, "Unsupported date value.")

    trimmed = value.strip()
    if not trimmed:
        raise InvalidDate(value)
    match = _ISO_DATE_RE.match(trimmed)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_date(year, month, day, value)
    match = _DOTTED_DATE_RE.match(trimmed)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _build_date(year, month, day, value)
    return _localize(_parse_datetime(trimmed), tz_name).date()


def compare_key(value: object, tz_name: Optional[str] = None) -> str:
    return normalize(value, tz_name).isoformat()


def normalize_optional(value: object, tz_name: Optional[str] = None) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return normalize(value, tz_name)


def parse_month(value: object, tz_name: Optional[str] = None) -> date:
    """First day of the month named by ``value`` (``YYYY-MM`` or any full date)."""
    if isinstance(value, str):
        match = _ISO_MONTH_RE.match(value.strip())
        if match:
            return _build_date(int(match.group(1)), int(match.group(2)), 1, value)
    return normalize(value, tz_name).replace(day=1)


def month_bounds(month: date) -> Tuple[date, date]:
    first = month.replace(day=1)
    last_day = calendar.monthrange(first.year, first.month)[1]
    return first, first.replace(day=last_day)


def iter_days(first: date, last: date) -> Iterator[date]:
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def format_display(value: Optional[date]) -> str:
    if value is None:
        return "N/A"
    return f"{value.day:02d}.{value.month:02d}.{value.year}"
