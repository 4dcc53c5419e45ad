"""Tests for record generation.

These verify that the generator:
- Emits one record per matching template per day
- Leaves days without templates empty
- Tags holidays and leaves without suppressing records
- Copies template times as plain integers
"""

from datetime import date
from typing import List, Optional

from shiftfill.generator import (
    build_record_title,
    generate_records,
    plan_days,
    render_records_report,
    summarize_records,
    validate_generated_records,
)
from shiftfill.indexes import HolidayIndex, LeaveIndex, TemplateIndex
from shiftfill.models import FillPeriod, Holiday, LeavePeriod, ShiftTemplate, WeekRotation
from shiftfill.period import resolve_period

from .conftest import make_leave, make_record, make_template, make_week_templates

OCTOBER = resolve_period(date(2024, 10, 1))
JANUARY = resolve_period(date(2024, 1, 1))


def _generate(
    period: FillPeriod,
    templates: List[ShiftTemplate],
    rotation_length: int = 1,
    holidays: Optional[List[Holiday]] = None,
    leaves: Optional[List[LeavePeriod]] = None,
):
    return generate_records(
        period,
        WeekRotation(rotationLength=rotation_length, startOfWeekDay=7),
        TemplateIndex.build(templates),
        HolidayIndex.build(holidays or []),
        LeaveIndex.build(leaves or []),
    )


class TestGenerateRecords:
    def test_one_record_per_matching_day(self) -> None:
        records = _generate(OCTOBER, [make_template(day=1)])
        assert [record.date for record in records] == [
            date(2024, 10, 7),
            date(2024, 10, 14),
            date(2024, 10, 21),
            date(2024, 10, 28),
        ]

    def test_day_without_templates_yields_nothing(self) -> None:
        # Tuesdays in October 2024 fall in calendar weeks 1-5; only week 1 has templates.
        records = _generate(OCTOBER, [make_template(week=1, day=2)], rotation_length=2)
        assert [record.date for record in records] == [
            date(2024, 10, 1),
            date(2024, 10, 15),
            date(2024, 10, 29),
        ]

    def test_multiple_shifts_fan_out(self) -> None:
        period = FillPeriod(firstDay=date(2024, 10, 1), lastDay=date(2024, 10, 1))
        records = _generate(
            period,
            [make_template(day=2, shift=2, start="14:00", end="22:00"), make_template(day=2, shift=1)],
        )
        assert len(records) == 2
        assert [record.shiftNumber for record in records] == [1, 2]

    def test_times_copied_verbatim(self) -> None:
        period = FillPeriod(firstDay=date(2024, 10, 7), lastDay=date(2024, 10, 7))
        record = _generate(period, [make_template(day=1, start="07:05", end="15:45", lunch=45)])[0]
        assert (record.startHour, record.startMinute) == (7, 5)
        assert (record.endHour, record.endMinute) == (15, 45)
        assert record.lunchMinutes == 45
        assert record.title == "Template=c1 Week=1 Shift=1"

    def test_holiday_tagging(self) -> None:
        records = _generate(
            OCTOBER,
            make_week_templates(),
            holidays=[Holiday(date="2024-10-03", title="Unity Day")],
        )
        by_date = {record.date: record for record in records}
        assert by_date[date(2024, 10, 3)].holidayFlag == 1
        assert by_date[date(2024, 10, 4)].holidayFlag == 0
        assert sum(record.holidayFlag for record in records) == 1

    def test_leave_tagging(self) -> None:
        records = _generate(
            JANUARY,
            make_week_templates(),
            leaves=[make_leave("2024-01-10", "2024-01-20", leave_type="sick")],
        )
        by_date = {record.date: record for record in records}
        assert by_date[date(2024, 1, 15)].leaveTypeId == "sick"
        assert by_date[date(2024, 1, 21)].leaveTypeId is None

    def test_holiday_leave_and_template_co_occur(self) -> None:
        period = FillPeriod(firstDay=date(2024, 1, 1), lastDay=date(2024, 1, 1))
        records = _generate(
            period,
            make_week_templates(),
            holidays=[Holiday(date="2024-01-01", title="New Year")],
            leaves=[make_leave("2023-12-20", None, leave_type="vacation")],
        )
        assert len(records) == 1
        assert records[0].holidayFlag == 1
        assert records[0].leaveTypeId == "vacation"

    def test_empty_period_generates_nothing(self) -> None:
        period = FillPeriod(firstDay=date(2024, 10, 15), lastDay=date(2024, 10, 1))
        assert _generate(period, make_week_templates()) == []

    def test_generation_is_reproducible(self) -> None:
        templates = make_week_templates(week=1) + make_week_templates(week=2, start="10:00")
        first = _generate(OCTOBER, templates, rotation_length=2)
        second = _generate(OCTOBER, templates, rotation_length=2)
        assert first == second


class TestPlanDays:
    def test_one_plan_per_day(self) -> None:
        plans = plan_days(
            OCTOBER,
            WeekRotation(rotationLength=4, startOfWeekDay=7),
            TemplateIndex.build([make_template(week=2, day=2)]),
            HolidayIndex.build([]),
            LeaveIndex.build([]),
        )
        assert len(plans) == 31
        tuesday = plans[7]
        assert tuesday.date == date(2024, 10, 8)
        assert tuesday.calendarWeekNumber == 2
        assert tuesday.appliedTemplateWeekNumber == 2
        assert len(tuesday.matchedTemplates) == 1
        assert plans[0].matchedTemplates == []


class TestRecordDiagnostics:
    def test_summarize_records(self) -> None:
        records = [
            make_record(date(2024, 10, 7)),
            make_record(date(2024, 10, 3), shift=2).model_copy(update={"holidayFlag": 1}),
            make_record(date(2024, 10, 9)).model_copy(update={"leaveTypeId": "sick"}),
        ]
        stats = summarize_records(records)
        assert stats.totalRecords == 3
        assert stats.holidayRecords == 1
        assert stats.leaveRecords == 1
        assert stats.workingRecords == 1
        assert stats.shifts == [1, 2]
        assert stats.firstDate == date(2024, 10, 3)
        assert stats.lastDate == date(2024, 10, 9)
        assert stats.timeRanges == ["8:00-16:00"]

    def test_render_records_report(self) -> None:
        report = render_records_report([make_record(date(2024, 10, 7))])
        assert report.startswith("=== GENERATED RECORDS REPORT ===")
        assert "Total records: 1" in report
        assert "Period: 07.10.2024 - 07.10.2024" in report
        assert "  - 8:00-16:00" in report
        assert report.endswith("=== END OF REPORT ===")

    def test_render_empty_report(self) -> None:
        assert "Period: N/A - N/A" in render_records_report([])

    def test_validate_generated_records(self) -> None:
        good = make_record(date(2024, 10, 7))
        bad = good.model_copy(update={"startHour": 24, "lunchMinutes": 150, "holidayFlag": 2})
        validation = validate_generated_records([good, bad])
        assert not validation.isValid
        assert validation.validRecords == 1
        assert validation.invalidRecords == 1
        assert validation.issues[0].startswith("Record 2:")
        assert "Invalid start hours: 24" in validation.issues[0]

    def test_build_record_title(self) -> None:
        assert build_record_title(make_template(week=3, shift=2, contract_id="k9")) == (
            "Template=k9 Week=3 Shift=2"
        )
