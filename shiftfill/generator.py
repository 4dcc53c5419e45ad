from typing import Iterable, List

from .constants import HOLIDAY_FLAG, NO_HOLIDAY_FLAG
from .dates import format_display, iter_days
from .indexes import HolidayIndex, LeaveIndex, TemplateIndex, split_time
from .models import (
    DayPlan,
    FillPeriod,
    GeneratedRecord,
    LeaveMatch,
    RecordStatistics,
    RecordValidation,
    ShiftTemplate,
    WeekRotation,
)
from .rotation import resolve


def build_record_title(template: ShiftTemplate) -> str:
    return (
        f"Template={template.contractId} Week={template.templateWeekNumber} "
        f"Shift={template.shiftNumber}"
    )


def plan_days(
    period: FillPeriod,
    rotation: WeekRotation,
    template_index: TemplateIndex,
    holiday_index: HolidayIndex,
    leave_index: LeaveIndex,
) -> List[DayPlan]:
    if period.is_empty():
        return []
    start_of_month = period.firstDay.replace(day=1)
    plans: List[DayPlan] = []
    for day in iter_days(period.firstDay, period.lastDay):
        slot = resolve(day, start_of_month, rotation.startOfWeekDay, rotation.rotationLength)
        holiday = holiday_index.get(day)
        leave = leave_index.find(day)
        plans.append(
            DayPlan(
                date=day,
                calendarWeekNumber=slot.calendarWeekNumber,
                appliedTemplateWeekNumber=slot.appliedTemplateWeekNumber,
                dayOfWeek=slot.dayOfWeek,
                isHoliday=holiday is not None,
                holidayTitle=holiday.title if holiday is not None else None,
                leaveMatch=(
                    LeaveMatch(leaveTypeId=leave.leaveTypeId, title=leave.title)
                    if leave is not None
                    else None
                ),
                matchedTemplates=list(
                    template_index.find(slot.appliedTemplateWeekNumber, slot.dayOfWeek)
                ),
            )
        )
    return plans


def records_from_plans(plans: Iterable[DayPlan]) -> List[GeneratedRecord]:
    records: List[GeneratedRecord] = []
    for plan in plans:
        for template in plan.matchedTemplates:
            start = split_time(template.startTime)
            end = split_time(template.endTime)
            if start is None or end is None:
                continue
            records.append(
                GeneratedRecord(
                    date=plan.date,
                    startHour=start[0],
                    startMinute=start[1],
                    endHour=end[0],
                    endMinute=end[1],
                    lunchMinutes=template.lunchMinutes,
                    shiftNumber=template.shiftNumber,
                    contractId=template.contractId,
                    holidayFlag=HOLIDAY_FLAG if plan.isHoliday else NO_HOLIDAY_FLAG,
                    leaveTypeId=plan.leaveMatch.leaveTypeId if plan.leaveMatch else None,
                    title=build_record_title(template),
                )
            )
    return records


def generate_records(
    period: FillPeriod,
    rotation: WeekRotation,
    template_index: TemplateIndex,
    holiday_index: HolidayIndex,
    leave_index: LeaveIndex,
) -> List[GeneratedRecord]:
    """Produce one record per matching template for every day of the period.

    Holiday and leave annotations are attached to the records, never used to
    drop them.
    """
    plans = plan_days(period, rotation, template_index, holiday_index, leave_index)
    return records_from_plans(plans)


def _format_time(hour: int, minute: int) -> str:
    return f"{hour}:{minute:02d}"


def summarize_records(records: List[GeneratedRecord]) -> RecordStatistics:
    holiday_records = sum(1 for record in records if record.holidayFlag == HOLIDAY_FLAG)
    leave_records = sum(1 for record in records if record.leaveTypeId)
    dates = [record.date for record in records]
    time_ranges = {
        f"{_format_time(record.startHour, record.startMinute)}-"
        f"{_format_time(record.endHour, record.endMinute)}"
        for record in records
    }
    return RecordStatistics(
        totalRecords=len(records),
        holidayRecords=holiday_records,
        leaveRecords=leave_records,
        workingRecords=len(records) - holiday_records - leave_records,
        shifts=sorted({record.shiftNumber for record in records}),
        firstDate=min(dates) if dates else None,
        lastDate=max(dates) if dates else None,
        timeRanges=sorted(time_ranges),
    )


def render_records_report(records: List[GeneratedRecord]) -> str:
    stats = summarize_records(records)
    lines = [
        "=== GENERATED RECORDS REPORT ===",
        "",
        f"Total records: {stats.totalRecords}",
        f"Working days: {stats.workingRecords}",
        f"Holidays: {stats.holidayRecords}",
        f"Leave days: {stats.leaveRecords}",
        f"Period: {format_display(stats.firstDate)} - {format_display(stats.lastDate)}",
        f"Shifts: [{', '.join(str(shift) for shift in stats.shifts)}]",
        "",
        "Time ranges:",
    ]
    lines.extend(f"  - {time_range}" for time_range in stats.timeRanges)
    lines.append("")
    lines.append("=== END OF REPORT ===")
    return "\n".join(lines)


def validate_generated_records(records: List[GeneratedRecord]) -> RecordValidation:
    issues: List[str] = []
    valid = 0
    invalid = 0
    for index, record in enumerate(records):
        record_issues: List[str] = []
        if not record.title:
            record_issues.append("Missing title")
        if record.startHour < 0 or record.startHour > 23:
            record_issues.append(f"Invalid start hours: {record.startHour}")
        if record.startMinute < 0 or record.startMinute > 59:
            record_issues.append(f"Invalid start minutes: {record.startMinute}")
        if record.endHour < 0 or record.endHour > 23:
            record_issues.append(f"Invalid end hours: {record.endHour}")
        if record.endMinute < 0 or record.endMinute > 59:
            record_issues.append(f"Invalid end minutes: {record.endMinute}")
        if record.lunchMinutes < 0 or record.lunchMinutes > 120:
            record_issues.append(f"Unusual lunch time: {record.lunchMinutes} minutes")
        if record.holidayFlag not in (HOLIDAY_FLAG, NO_HOLIDAY_FLAG):
            record_issues.append(f"Invalid holiday flag: {record.holidayFlag}")
        if record_issues:
            invalid += 1
            issues.append(f"Record {index + 1}: {', '.join(record_issues)}")
        else:
            valid += 1
    return RecordValidation(
        isValid=invalid == 0,
        validRecords=valid,
        invalidRecords=invalid,
        issues=issues,
    )
