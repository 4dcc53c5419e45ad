import logging
from datetime import date
from typing import Iterable

from .constants import MAX_ROTATION_LENGTH, MIN_ROTATION_LENGTH
from .errors import RotationError
from .models import RotationSlot, ShiftTemplate, WeekRotation

logger = logging.getLogger(__name__)


def _check_rotation_length(rotation_length: int) -> None:
    if rotation_length < MIN_ROTATION_LENGTH or rotation_length > MAX_ROTATION_LENGTH:
        raise RotationError(
            f"Rotation length must be between {MIN_ROTATION_LENGTH} and "
            f"{MAX_ROTATION_LENGTH}, got {rotation_length}."
        )


def _check_week_start(start_of_week_day: int) -> None:
    if start_of_week_day < 1 or start_of_week_day > 7:
        raise RotationError(f"Start of week day must be between 1 and 7, got {start_of_week_day}.")


def calendar_week_number(day_of_month: int) -> int:
    return (day_of_month - 1) // 7 + 1


def applied_template_week(calendar_week: int, rotation_length: int) -> int:
    """Map a week-of-month onto the template week used for it.

    Lengths 2 and 3 wrap differently from length 4: a three-week rotation
    sends week 4 and later back to week 1 instead of cycling 1,2,3.
    """
    _check_rotation_length(rotation_length)
    if rotation_length == 1:
        return 1
    if rotation_length == 2:
        return (calendar_week - 1) % 2 + 1
    if rotation_length == 3:
        return calendar_week if calendar_week <= 3 else 1
    remainder = calendar_week % 4
    return remainder if remainder else 4


def resolve(
    day: date, start_of_month: date, start_of_week_day: int, rotation_length: int
) -> RotationSlot:
    _check_rotation_length(rotation_length)
    _check_week_start(start_of_week_day)
    if day < start_of_month:
        raise RotationError(f"{day.isoformat()} is before {start_of_month.isoformat()}.")
    day_of_month = (day - start_of_month).days + 1
    calendar_week = calendar_week_number(day_of_month)
    return RotationSlot(
        calendarWeekNumber=calendar_week,
        appliedTemplateWeekNumber=applied_template_week(calendar_week, rotation_length),
        dayOfWeek=day.isoweekday(),
    )


def rotation_length_from_templates(templates: Iterable[ShiftTemplate]) -> int:
    week_numbers = {template.templateWeekNumber for template in templates if not template.deleted}
    length = len(week_numbers)
    if length > MAX_ROTATION_LENGTH:
        logger.warning(
            "Found %d template weeks, clamping rotation to %d", length, MAX_ROTATION_LENGTH
        )
    return max(MIN_ROTATION_LENGTH, min(MAX_ROTATION_LENGTH, length))


def build_rotation(templates: Iterable[ShiftTemplate], start_of_week_day: int) -> WeekRotation:
    _check_week_start(start_of_week_day)
    return WeekRotation(
        rotationLength=rotation_length_from_templates(templates),
        startOfWeekDay=start_of_week_day,
    )


def describe_rotation(rotation_length: int) -> str:
    if rotation_length == 1:
        return "Single week template - repeat for all weeks (1,1,1,1)"
    if rotation_length == 2:
        return "Two week templates - alternate pattern (1,2,1,2)"
    if rotation_length == 3:
        return "Three week templates - cycle pattern (1,2,3,1,1)"
    if rotation_length == 4:
        return "Four week templates - full month cycle (1,2,3,4)"
    return f"{rotation_length} week templates - custom cycle pattern"
