import logging
import re
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import OPEN_LEAVE_END
from .dates import compare_key, normalize
from .errors import InvalidDate
from .models import Holiday, LeaveInterval, LeavePeriod, ShiftTemplate

logger = logging.getLogger(__name__)

TemplateKey = Tuple[int, int]


def _parse_time_to_minutes(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    match = re.match(r"^(\d{1,2}):(\d{2})$", value.strip())
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours < 0 or hours > 23 or minutes < 0 or minutes > 59:
        return None
    return hours * 60 + minutes


def split_time(value: Optional[str]) -> Optional[Tuple[int, int]]:
    total = _parse_time_to_minutes(value)
    if total is None:
        return None
    return divmod(total, 60)


class TemplateIndex:
    """Active shift templates grouped by (template week, day of week)."""

    def __init__(self, by_key: Dict[TemplateKey, Tuple[ShiftTemplate, ...]], skipped: List[str]):
        self._by_key = by_key
        self.skipped = tuple(skipped)

    @classmethod
    def build(cls, templates: Iterable[ShiftTemplate]) -> "TemplateIndex":
        grouped: Dict[TemplateKey, List[ShiftTemplate]] = {}
        skipped: List[str] = []
        for template in templates:
            if template.deleted:
                continue
            if split_time(template.startTime) is None or split_time(template.endTime) is None:
                logger.warning(
                    "Skipping template %s (week %d, day %d): missing or invalid start/end time",
                    template.id or "?",
                    template.templateWeekNumber,
                    template.dayOfWeek,
                )
                skipped.append(
                    f"Template {template.id or '?'} week {template.templateWeekNumber} "
                    f"day {template.dayOfWeek}: missing start or end time"
                )
                continue
            key = (template.templateWeekNumber, template.dayOfWeek)
            grouped.setdefault(key, []).append(template)
        by_key = {
            key: tuple(sorted(items, key=lambda item: item.shiftNumber))
            for key, items in grouped.items()
        }
        return cls(by_key, skipped)

    def find(self, week_number: int, day_of_week: int) -> Tuple[ShiftTemplate, ...]:
        return self._by_key.get((week_number, day_of_week), ())

    def templates(self) -> List[ShiftTemplate]:
        return [template for key in sorted(self._by_key) for template in self._by_key[key]]

    def week_numbers(self) -> List[int]:
        return sorted({week for week, _day in self._by_key})

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_key.values())


class HolidayIndex:
    def __init__(self, by_key: Dict[str, Holiday]):
        self._by_key = by_key

    @classmethod
    def build(cls, holidays: Iterable[Holiday], tz_name: Optional[str] = None) -> "HolidayIndex":
        by_key: Dict[str, Holiday] = {}
        for holiday in holidays:
            try:
                key = compare_key(holiday.date, tz_name)
            except InvalidDate:
                logger.warning("Skipping holiday %r with invalid date %r", holiday.title, holiday.date)
                continue
            by_key.setdefault(key, holiday)
        return cls(by_key)

    def has(self, day: date) -> bool:
        return compare_key(day) in self._by_key

    def get(self, day: date) -> Optional[Holiday]:
        return self._by_key.get(compare_key(day))

    def in_range(self, first: date, last: date) -> List[Tuple[str, str]]:
        first_key, last_key = compare_key(first), compare_key(last)
        return [
            (key, holiday.title)
            for key, holiday in sorted(self._by_key.items())
            if first_key <= key <= last_key
        ]

    def __len__(self) -> int:
        return len(self._by_key)


class LeaveIndex:
    """Leave periods as inclusive day intervals, kept in store order.

    When intervals overlap, ``find`` returns the first one that covers the day.
    """

    def __init__(self, intervals: List[LeaveInterval]):
        self._intervals = tuple(intervals)

    @classmethod
    def build(cls, leaves: Iterable[LeavePeriod], tz_name: Optional[str] = None) -> "LeaveIndex":
        intervals: List[LeaveInterval] = []
        for leave in leaves:
            if leave.deleted:
                continue
            try:
                start = normalize(leave.startDate, tz_name)
                open_ended = leave.endDate is None or (
                    isinstance(leave.endDate, str) and not leave.endDate.strip()
                )
                end = OPEN_LEAVE_END if open_ended else normalize(leave.endDate, tz_name)
            except InvalidDate:
                logger.warning("Skipping leave %s with invalid dates", leave.id or leave.title)
                continue
            if start > end:
                logger.warning(
                    "Skipping leave %s: start %s after end %s",
                    leave.id or leave.title,
                    start.isoformat(),
                    end.isoformat(),
                )
                continue
            intervals.append(
                LeaveInterval(
                    startDate=start,
                    endDate=end,
                    open=open_ended,
                    leaveTypeId=leave.leaveTypeId,
                    title=leave.title,
                )
            )
        return cls(intervals)

    def find(self, day: date) -> Optional[LeaveInterval]:
        for interval in self._intervals:
            if interval.startDate <= day <= interval.endDate:
                return interval
        return None

    def overlapping(self, first: date, last: date) -> List[LeaveInterval]:
        return [
            interval
            for interval in self._intervals
            if interval.startDate <= last and interval.endDate >= first
        ]

    def __len__(self) -> int:
        return len(self._intervals)
