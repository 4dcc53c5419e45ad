import sqlite3
from datetime import date
from typing import Dict, List, Optional

from .constants import DAY_KEYS, DEFAULT_LUNCH_MINUTES
from .dates import compare_key, month_bounds
from .db import _utcnow_iso, connection
from .errors import RecordWriteError, StoreUnavailableError
from .models import (
    Contract,
    ExistingRecord,
    FillPeriod,
    GeneratedRecord,
    Holiday,
    LeavePeriod,
    ScheduleLog,
    ShiftTemplate,
)


def _optional_str(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class _SqliteStore:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def _read(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            with connection(self.db_path) as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"{type(self).__name__} read failed: {exc}") from exc


class SqliteContractStore(_SqliteStore):
    def get(self, contract_id: str) -> Optional[Contract]:
        rows = self._read(
            "SELECT id, employee_id, title, start_date, finish_date, deleted "
            "FROM contracts WHERE id = ?",
            (contract_id,),
        )
        if not rows:
            return None
        row = rows[0]
        return Contract(
            id=row["id"],
            employeeId=row["employee_id"],
            title=row["title"],
            startDate=_optional_str(row["start_date"]),
            finishDate=_optional_str(row["finish_date"]),
            deleted=bool(row["deleted"]),
        )


class SqliteTemplateStore(_SqliteStore):
    """Weekly time rows stored one row per (contract, week, shift).

    Each row carries a start/end pair per weekday and expands to one template
    for every weekday holding any time value.
    """

    def get_by_contract(self, contract_id: str) -> List[ShiftTemplate]:
        rows = self._read(
            "SELECT * FROM weekly_time_rows WHERE contract_id = ? "
            "ORDER BY week_number, shift_number, id",
            (contract_id,),
        )
        templates: List[ShiftTemplate] = []
        for row in rows:
            for day_index, key in enumerate(DAY_KEYS, start=1):
                start = _optional_str(row[f"{key}_start"])
                end = _optional_str(row[f"{key}_end"])
                if start is None and end is None:
                    continue
                templates.append(
                    ShiftTemplate(
                        id=f"{row['id']}-{key}",
                        contractId=row["contract_id"],
                        templateWeekNumber=row["week_number"],
                        dayOfWeek=day_index,
                        shiftNumber=row["shift_number"],
                        startTime=start,
                        endTime=end,
                        lunchMinutes=row["lunch_minutes"],
                        deleted=bool(row["deleted"]),
                    )
                )
        return templates


class SqliteHolidayStore(_SqliteStore):
    def get_by_month(self, month: date) -> List[Holiday]:
        first, last = month_bounds(month)
        rows = self._read(
            "SELECT date_iso, title FROM holidays WHERE date_iso BETWEEN ? AND ? "
            "ORDER BY date_iso, id",
            (first.isoformat(), last.isoformat()),
        )
        return [Holiday(date=row["date_iso"], title=row["title"]) for row in rows]


class SqliteLeaveStore(_SqliteStore):
    def get_by_month(
        self,
        month: date,
        employee_id: str,
        manager_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> List[LeavePeriod]:
        first, last = month_bounds(month)
        rows = self._read(
            """
            SELECT id, employee_id, start_date, end_date, leave_type_id, title, deleted
            FROM leaves
            WHERE employee_id = ?
              AND deleted = 0
              AND start_date <= ?
              AND (end_date IS NULL OR end_date = '' OR end_date >= ?)
              AND (? IS NULL OR manager_id = ?)
              AND (? IS NULL OR group_id = ?)
            ORDER BY id
            """,
            (
                employee_id,
                last.isoformat(),
                first.isoformat(),
                manager_id,
                manager_id,
                group_id,
                group_id,
            ),
        )
        return [
            LeavePeriod(
                id=str(row["id"]),
                employeeId=row["employee_id"],
                startDate=row["start_date"],
                endDate=_optional_str(row["end_date"]),
                leaveTypeId=_optional_str(row["leave_type_id"]),
                title=row["title"],
                deleted=bool(row["deleted"]),
            )
            for row in rows
        ]


class SqliteShiftRecordStore(_SqliteStore):
    def query(
        self, period: FillPeriod, employee_id: str, contract_id: Optional[str] = None
    ) -> List[ExistingRecord]:
        sql = (
            "SELECT id, date_iso, title, checked, export_result, contract_id "
            "FROM shift_records WHERE deleted = 0 AND employee_id = ? "
            "AND date_iso BETWEEN ? AND ?"
        )
        params: tuple = (employee_id, period.firstDay.isoformat(), period.lastDay.isoformat())
        if contract_id:
            sql += " AND contract_id = ?"
            params += (contract_id,)
        rows = self._read(sql + " ORDER BY date_iso, id", params)
        return [
            ExistingRecord(
                id=str(row["id"]),
                date=row["date_iso"],
                title=row["title"],
                checkedCount=row["checked"],
                exportResult=row["export_result"],
                contractId=row["contract_id"],
            )
            for row in rows
        ]

    def create(
        self,
        record: GeneratedRecord,
        manager_id: Optional[str],
        group_id: Optional[str],
        employee_id: str,
    ) -> Optional[str]:
        try:
            with connection(self.db_path) as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO shift_records (
                        employee_id, manager_id, group_id, contract_id, date_iso,
                        start_hour, start_minute, end_hour, end_minute, lunch_minutes,
                        shift_number, holiday, leave_type_id, title, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        employee_id,
                        manager_id,
                        group_id,
                        record.contractId,
                        record.date.isoformat(),
                        record.startHour,
                        record.startMinute,
                        record.endHour,
                        record.endMinute,
                        record.lunchMinutes,
                        record.shiftNumber,
                        record.holidayFlag,
                        record.leaveTypeId,
                        record.title,
                        _utcnow_iso(),
                    ),
                )
                conn.commit()
                return str(cursor.lastrowid)
        except sqlite3.Error as exc:
            raise RecordWriteError(str(exc)) from exc

    def soft_delete(self, record_id: str) -> bool:
        try:
            with connection(self.db_path) as conn:
                cursor = conn.execute(
                    "UPDATE shift_records SET deleted = 1 WHERE id = ? AND deleted = 0",
                    (record_id,),
                )
                conn.commit()
                return cursor.rowcount == 1
        except sqlite3.Error as exc:
            raise RecordWriteError(str(exc)) from exc

    def get_by_employee(self, employee_id: str, include_deleted: bool = False) -> List[Dict]:
        sql = "SELECT * FROM shift_records WHERE employee_id = ?"
        if not include_deleted:
            sql += " AND deleted = 0"
        rows = self._read(sql + " ORDER BY date_iso, shift_number, id", (employee_id,))
        return [dict(row) for row in rows]


class SqliteScheduleLogStore(_SqliteStore):
    def add(self, entry: ScheduleLog) -> Optional[str]:
        with connection(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO schedule_logs (
                    title, result, message, period_iso, employee_id,
                    manager_id, group_id, contract_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.title,
                    entry.result,
                    entry.message,
                    entry.periodISO,
                    entry.employeeId,
                    entry.managerId,
                    entry.groupId,
                    entry.contractId,
                    entry.createdAt or _utcnow_iso(),
                ),
            )
            conn.commit()
            return str(cursor.lastrowid)

    def list_recent(
        self,
        employee_id: Optional[str] = None,
        limit: int = 20,
        period_iso: Optional[str] = None,
    ) -> List[ScheduleLog]:
        clauses = []
        params: tuple = ()
        if employee_id:
            clauses.append("employee_id = ?")
            params += (employee_id,)
        if period_iso:
            clauses.append("period_iso = ?")
            params += (period_iso,)
        sql = "SELECT * FROM schedule_logs"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        rows = self._read(sql + " ORDER BY id DESC LIMIT ?", params + (limit,))
        return [
            ScheduleLog(
                id=str(row["id"]),
                title=row["title"],
                result=row["result"],
                message=row["message"],
                periodISO=row["period_iso"],
                employeeId=row["employee_id"],
                managerId=row["manager_id"],
                groupId=row["group_id"],
                contractId=row["contract_id"],
                createdAt=row["created_at"],
            )
            for row in rows
        ]


def add_contract(
    db_path: Optional[str],
    contract_id: str,
    employee_id: str,
    title: str = "",
    start_date: Optional[str] = None,
    finish_date: Optional[str] = None,
    deleted: bool = False,
) -> None:
    with connection(db_path) as conn:
        conn.execute(
            "INSERT OR REPLACE INTO contracts (id, employee_id, title, start_date, finish_date, deleted) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                contract_id,
                employee_id,
                title,
                compare_key(start_date) if start_date else None,
                compare_key(finish_date) if finish_date else None,
                int(deleted),
            ),
        )
        conn.commit()


def add_weekly_row(
    db_path: Optional[str],
    contract_id: str,
    week_number: int,
    times: Dict[str, tuple],
    shift_number: int = 1,
    lunch_minutes: int = DEFAULT_LUNCH_MINUTES,
    deleted: bool = False,
) -> str:
    """Insert one weekly time row; ``times`` maps day keys ("mon".."sun") to (start, end)."""
    unknown = set(times) - set(DAY_KEYS)
    if unknown:
        raise ValueError(f"Unknown day keys: {sorted(unknown)}")
    columns = ["contract_id", "week_number", "shift_number", "lunch_minutes", "deleted"]
    values: list = [contract_id, week_number, shift_number, lunch_minutes, int(deleted)]
    for key, (start, end) in times.items():
        columns.extend([f"{key}_start", f"{key}_end"])
        values.extend([start, end])
    placeholders = ", ".join("?" for _ in columns)
    with connection(db_path) as conn:
        cursor = conn.execute(
            f"INSERT INTO weekly_time_rows ({', '.join(columns)}) VALUES ({placeholders})",
            tuple(values),
        )
        conn.commit()
        return str(cursor.lastrowid)


def add_holiday(db_path: Optional[str], holiday_date: str, title: str = "") -> None:
    with connection(db_path) as conn:
        conn.execute(
            "INSERT INTO holidays (date_iso, title) VALUES (?, ?)",
            (compare_key(holiday_date), title),
        )
        conn.commit()


def add_leave(
    db_path: Optional[str],
    employee_id: str,
    start_date: str,
    end_date: Optional[str] = None,
    leave_type_id: Optional[str] = None,
    title: str = "",
    manager_id: Optional[str] = None,
    group_id: Optional[str] = None,
    deleted: bool = False,
) -> str:
    with connection(db_path) as conn:
        cursor = conn.execute(
            """
            INSERT INTO leaves (
                employee_id, manager_id, group_id, start_date, end_date,
                leave_type_id, title, deleted
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                employee_id,
                manager_id,
                group_id,
                compare_key(start_date),
                compare_key(end_date) if end_date else None,
                leave_type_id,
                title,
                int(deleted),
            ),
        )
        conn.commit()
        return str(cursor.lastrowid)


def add_record(
    db_path: Optional[str],
    employee_id: str,
    record_date: str,
    contract_id: Optional[str] = None,
    title: str = "",
    checked: int = 0,
    export_result: str = "",
) -> str:
    with connection(db_path) as conn:
        cursor = conn.execute(
            """
            INSERT INTO shift_records (
                employee_id, contract_id, date_iso, start_hour, start_minute,
                end_hour, end_minute, title, checked, export_result, created_at
            ) VALUES (?, ?, ?, 0, 0, 0, 0, ?, ?, ?, ?)
            """,
            (
                employee_id,
                contract_id,
                compare_key(record_date),
                title,
                checked,
                export_result,
                _utcnow_iso(),
            ),
        )
        conn.commit()
        return str(cursor.lastrowid)
