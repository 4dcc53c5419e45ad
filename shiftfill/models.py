from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

# Raw date values as collaborators hand them over: date objects, datetimes
# (naive or aware) or strings. The normalizer turns them into calendar days.
DateInput = Union[datetime, date, str]
CalendarDay = date

FillStatus = Literal["blocked", "completed", "partial", "failed"]
FillAction = Literal["fill", "replace", "blocked"]


class ShiftTemplate(BaseModel):
    id: Optional[str] = None
    contractId: str
    templateWeekNumber: int
    dayOfWeek: int
    shiftNumber: int = 1
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    lunchMinutes: int = 30
    deleted: bool = False


class WeekRotation(BaseModel):
    rotationLength: int
    startOfWeekDay: int


class RotationSlot(BaseModel):
    calendarWeekNumber: int
    appliedTemplateWeekNumber: int
    dayOfWeek: int


class Holiday(BaseModel):
    date: DateInput
    title: str = ""


class LeavePeriod(BaseModel):
    id: Optional[str] = None
    employeeId: Optional[str] = None
    startDate: DateInput
    endDate: Optional[DateInput] = None
    leaveTypeId: Optional[str] = None
    title: str = ""
    deleted: bool = False


class LeaveInterval(BaseModel):
    """A leave period reduced to inclusive calendar-day bounds."""

    startDate: date
    endDate: date
    open: bool = False
    leaveTypeId: Optional[str] = None
    title: str = ""


class Contract(BaseModel):
    id: str
    employeeId: Optional[str] = None
    title: str = ""
    startDate: Optional[DateInput] = None
    finishDate: Optional[DateInput] = None
    deleted: bool = False


class FillPeriod(BaseModel):
    firstDay: date
    lastDay: date

    def is_empty(self) -> bool:
        return self.firstDay > self.lastDay

    def day_count(self) -> int:
        if self.is_empty():
            return 0
        return (self.lastDay - self.firstDay).days + 1


class LeaveMatch(BaseModel):
    leaveTypeId: Optional[str] = None
    title: str = ""


class DayPlan(BaseModel):
    date: CalendarDay
    calendarWeekNumber: int
    appliedTemplateWeekNumber: int
    dayOfWeek: int
    isHoliday: bool = False
    holidayTitle: Optional[str] = None
    leaveMatch: Optional[LeaveMatch] = None
    matchedTemplates: List[ShiftTemplate] = Field(default_factory=list)


class GeneratedRecord(BaseModel):
    date: CalendarDay
    startHour: int
    startMinute: int
    endHour: int
    endMinute: int
    lunchMinutes: int
    shiftNumber: int
    contractId: str
    holidayFlag: int = 0
    leaveTypeId: Optional[str] = None
    title: str


class ExistingRecord(BaseModel):
    id: str
    date: DateInput
    title: str = ""
    checkedCount: int = 0
    exportResult: Optional[str] = None
    contractId: Optional[str] = None


class ExistingRecordSummary(BaseModel):
    totalCount: int = 0
    processedCount: int = 0
    unprocessedIds: List[str] = Field(default_factory=list)

    def has_processed(self) -> bool:
        return self.processedCount > 0


class SaveResult(BaseModel):
    successCount: int = 0
    totalRecords: int = 0
    errors: List[str] = Field(default_factory=list)
    createdIds: List[str] = Field(default_factory=list)


class RecordStatistics(BaseModel):
    totalRecords: int = 0
    holidayRecords: int = 0
    leaveRecords: int = 0
    workingRecords: int = 0
    shifts: List[int] = Field(default_factory=list)
    firstDate: Optional[date] = None
    lastDate: Optional[date] = None
    timeRanges: List[str] = Field(default_factory=list)


class RecordValidation(BaseModel):
    isValid: bool = True
    validRecords: int = 0
    invalidRecords: int = 0
    issues: List[str] = Field(default_factory=list)


class FillRequest(BaseModel):
    selectedMonth: str
    employeeId: Optional[str] = None
    contractId: Optional[str] = None
    managerId: Optional[str] = None
    groupId: Optional[str] = None
    rotationStartOfWeekDay: Optional[int] = None


class FillResult(BaseModel):
    status: FillStatus
    generatedCount: int = 0
    savedCount: int = 0
    deletedCount: int = 0
    errors: List[str] = Field(default_factory=list)
    blockingReason: Optional[str] = None
    reasonCode: Optional[str] = None
    message: str = ""
    period: Optional[FillPeriod] = None


class FillCheck(BaseModel):
    action: FillAction
    existingCount: int = 0
    processedCount: int = 0
    message: str = ""
    period: Optional[FillPeriod] = None


class FillPreview(BaseModel):
    period: FillPeriod
    rotation: WeekRotation
    rotationDescription: str
    records: List[GeneratedRecord] = Field(default_factory=list)
    days: List[DayPlan] = Field(default_factory=list)
    statistics: RecordStatistics
    validation: RecordValidation
    report: str = ""


class FillEligibility(BaseModel):
    eligible: bool
    reason: Optional[str] = None
    hasProcessedRecords: bool = False
    contractId: Optional[str] = None


class BatchFillItem(BaseModel):
    staffId: str
    staffName: str = ""
    autoSchedule: bool = True
    request: FillRequest


class BatchFillRequest(BaseModel):
    items: List[BatchFillItem] = Field(default_factory=list)
    pauseMs: Optional[int] = Field(default=None, ge=0)


class BatchFillEntry(BaseModel):
    staffId: str
    staffName: str = ""
    success: bool
    message: str = ""
    createdRecords: Optional[int] = None
    skipReason: Optional[str] = None


class BatchFillResult(BaseModel):
    totalProcessed: int = 0
    successCount: int = 0
    skippedCount: int = 0
    errorCount: int = 0
    executionTimeMs: int = 0
    results: List[BatchFillEntry] = Field(default_factory=list)


class ScheduleLog(BaseModel):
    id: Optional[str] = None
    title: str
    result: int
    message: str = ""
    periodISO: Optional[str] = None
    employeeId: Optional[str] = None
    managerId: Optional[str] = None
    groupId: Optional[str] = None
    contractId: Optional[str] = None
    createdAt: Optional[str] = None
