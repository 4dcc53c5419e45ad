import logging
from datetime import date
from typing import List, Optional, Tuple

from .constants import LOG_RESULT_ERROR, LOG_RESULT_INFO, LOG_RESULT_SUCCESS
from .dates import format_display, month_bounds
from .db import _utcnow_iso
from .models import FillRequest, FillResult, LeaveInterval, ScheduleLog, WeekRotation
from .rotation import describe_rotation
from .stores import ScheduleLogStore

logger = logging.getLogger(__name__)


def log_result_for(result: FillResult) -> int:
    if result.status == "blocked":
        return LOG_RESULT_INFO
    if result.status == "completed":
        return LOG_RESULT_SUCCESS
    if result.status == "partial" and result.savedCount > 0:
        return LOG_RESULT_SUCCESS
    return LOG_RESULT_ERROR


def _status_label(code: int) -> str:
    if code == LOG_RESULT_SUCCESS:
        return "SUCCESS"
    if code == LOG_RESULT_INFO:
        return "INFO/REFUSAL"
    return "FAILED"


def build_fill_log_message(
    params: FillRequest,
    result: FillResult,
    month: Optional[date] = None,
    week_start_day: Optional[int] = None,
    rotation: Optional[WeekRotation] = None,
    holidays: Optional[List[Tuple[str, str]]] = None,
    leaves: Optional[List[LeaveInterval]] = None,
    created_at: Optional[str] = None,
) -> str:
    lines: List[str] = [
        "=== FILL OPERATION LOG ===",
        f"Date: {created_at or _utcnow_iso()}",
        f"Employee: {params.employeeId or 'N/A'}",
        f"Period: {params.selectedMonth}",
        f"Manager: {params.managerId or 'N/A'}",
        f"Group: {params.groupId or 'N/A'}",
        "",
    ]
    if month is not None:
        first, last = month_bounds(month)
        lines.append("PERIOD DETAILS:")
        lines.append(f"Month range: {format_display(first)} - {format_display(last)}")
        if result.period is not None and not result.period.is_empty():
            lines.append(
                f"Fill range: {format_display(result.period.firstDay)} - "
                f"{format_display(result.period.lastDay)}"
            )
        if week_start_day is not None:
            lines.append(f"Day of start week: {week_start_day}")
        lines.append("")
    if rotation is not None:
        lines.append("ROTATION:")
        lines.append(f"Number of week templates: {rotation.rotationLength}")
        lines.append(describe_rotation(rotation.rotationLength))
        lines.append("")

    code = log_result_for(result)
    lines.append(f"OPERATION RESULT: {_status_label(code)}")
    lines.append(f"Message: {result.message}")
    lines.append(f"Records Generated: {result.generatedCount}")
    lines.append(f"Records Created: {result.savedCount}")
    lines.append(f"Records Deleted: {result.deletedCount}")
    if params.contractId:
        lines.append(f"Contract ID: {params.contractId}")
    lines.append("")

    if holidays is not None:
        lines.append("=== HOLIDAYS DETAILS ===")
        if holidays:
            lines.extend(f"{day}: {title}" for day, title in holidays)
        else:
            lines.append("No holidays found in period")
        lines.append("")
    if leaves is not None:
        lines.append("=== LEAVES DETAILS ===")
        if leaves:
            for leave in leaves:
                end = "open" if leave.open else leave.endDate.isoformat()
                lines.append(
                    f"{leave.startDate.isoformat()} - {end}: {leave.title} "
                    f"(Type: {leave.leaveTypeId or 'N/A'})"
                )
        else:
            lines.append("No leaves found in period")
        lines.append("")
    if result.errors:
        lines.append("=== ERRORS ===")
        lines.extend(result.errors)
        lines.append("")
    return "\n".join(lines).rstrip("\n")


def build_log_entry(params: FillRequest, result: FillResult, message: str) -> ScheduleLog:
    period_iso = None
    if result.period is not None:
        period_iso = result.period.firstDay.replace(day=1).isoformat()
    return ScheduleLog(
        title=f"Fill {params.selectedMonth} employee {params.employeeId or 'N/A'}",
        result=log_result_for(result),
        message=message,
        periodISO=period_iso,
        employeeId=params.employeeId,
        managerId=params.managerId,
        groupId=params.groupId,
        contractId=params.contractId,
        createdAt=_utcnow_iso(),
    )


def write_fill_log(store: Optional[ScheduleLogStore], entry: ScheduleLog) -> Optional[str]:
    if store is None:
        return None
    try:
        return store.add(entry)
    except Exception as exc:
        logger.warning("Could not write fill log for employee %s: %s", entry.employeeId, exc)
        return None
