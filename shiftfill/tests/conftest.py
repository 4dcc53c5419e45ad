"""Shared factories and in-memory store fakes for the fill engine tests."""

from datetime import date
from typing import Dict, Iterable, List, Optional

import pytest

from shiftfill.config import FillSettings
from shiftfill.engine import FillEngine
from shiftfill.models import (
    Contract,
    ExistingRecord,
    FillRequest,
    GeneratedRecord,
    Holiday,
    LeavePeriod,
    ScheduleLog,
    ShiftTemplate,
)

ALL_DAYS = (1, 2, 3, 4, 5, 6, 7)


def make_template(
    week: int = 1,
    day: int = 1,
    shift: int = 1,
    start: Optional[str] = "08:00",
    end: Optional[str] = "16:00",
    lunch: int = 30,
    contract_id: str = "c1",
    deleted: bool = False,
    template_id: Optional[str] = None,
) -> ShiftTemplate:
    return ShiftTemplate(
        id=template_id or f"t-{week}-{day}-{shift}",
        contractId=contract_id,
        templateWeekNumber=week,
        dayOfWeek=day,
        shiftNumber=shift,
        startTime=start,
        endTime=end,
        lunchMinutes=lunch,
        deleted=deleted,
    )


def make_week_templates(week: int = 1, days: Iterable[int] = ALL_DAYS, **kwargs) -> List[ShiftTemplate]:
    return [make_template(week=week, day=day, **kwargs) for day in days]


def make_contract(
    contract_id: str = "c1",
    start: Optional[str] = "2024-01-01",
    finish: Optional[str] = None,
    deleted: bool = False,
) -> Contract:
    return Contract(
        id=contract_id,
        employeeId="e1",
        title="Main contract",
        startDate=start,
        finishDate=finish,
        deleted=deleted,
    )


def make_leave(
    start: str,
    end: Optional[str] = None,
    leave_type: str = "vacation",
    title: str = "Vacation",
    deleted: bool = False,
    leave_id: Optional[str] = None,
) -> LeavePeriod:
    return LeavePeriod(
        id=leave_id,
        employeeId="e1",
        startDate=start,
        endDate=end,
        leaveTypeId=leave_type,
        title=title,
        deleted=deleted,
    )


def make_existing(
    record_id: str = "r1",
    day: str = "2024-10-07",
    checked: int = 0,
    export_result: Optional[str] = "",
    contract_id: str = "c1",
) -> ExistingRecord:
    return ExistingRecord(
        id=record_id,
        date=day,
        title="Existing",
        checkedCount=checked,
        exportResult=export_result,
        contractId=contract_id,
    )


def make_record(day: date, shift: int = 1, contract_id: str = "c1") -> GeneratedRecord:
    return GeneratedRecord(
        date=day,
        startHour=8,
        startMinute=0,
        endHour=16,
        endMinute=0,
        lunchMinutes=30,
        shiftNumber=shift,
        contractId=contract_id,
        title=f"Template={contract_id} Week=1 Shift={shift}",
    )


def make_request(
    month: str = "2024-10",
    employee_id: Optional[str] = "e1",
    contract_id: Optional[str] = "c1",
    week_start: Optional[int] = None,
) -> FillRequest:
    return FillRequest(
        selectedMonth=month,
        employeeId=employee_id,
        contractId=contract_id,
        managerId="m1",
        groupId="g1",
        rotationStartOfWeekDay=week_start,
    )


class FakeRecordStore:
    def __init__(
        self,
        existing: Optional[List[ExistingRecord]] = None,
        fail_on_calls: Iterable[int] = (),
        no_id_on_calls: Iterable[int] = (),
        fail_delete_ids: Iterable[str] = (),
    ):
        self.existing = list(existing or [])
        self.fail_on_calls = set(fail_on_calls)
        self.no_id_on_calls = set(no_id_on_calls)
        self.fail_delete_ids = set(fail_delete_ids)
        self.created: List[GeneratedRecord] = []
        self.deleted_ids: List[str] = []
        self.create_calls = 0
        self.query_calls = 0

    def query(self, period, employee_id, contract_id=None):
        self.query_calls += 1
        return [
            record
            for record in self.existing
            if record.id not in self.deleted_ids
            and (contract_id is None or record.contractId == contract_id)
        ]

    def create(self, record, manager_id, group_id, employee_id):
        self.create_calls += 1
        call_number = self.create_calls
        if call_number in self.fail_on_calls:
            raise RuntimeError("store rejected the record")
        if call_number in self.no_id_on_calls:
            return None
        self.created.append(record)
        return f"new-{call_number}"

    def soft_delete(self, record_id):
        if record_id in self.fail_delete_ids:
            raise RuntimeError("delete rejected")
        self.deleted_ids.append(record_id)
        return True


class FakeHolidayStore:
    def __init__(self, holidays: Optional[List[Holiday]] = None, error: Optional[Exception] = None):
        self.holidays = list(holidays or [])
        self.error = error
        self.calls = 0

    def get_by_month(self, month):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.holidays)


class FakeLeaveStore:
    def __init__(self, leaves: Optional[List[LeavePeriod]] = None):
        self.leaves = list(leaves or [])
        self.calls = 0

    def get_by_month(self, month, employee_id, manager_id, group_id):
        self.calls += 1
        return list(self.leaves)


class FakeTemplateStore:
    def __init__(self, templates: Optional[List[ShiftTemplate]] = None):
        self.templates = list(templates or [])
        self.calls = 0

    def get_by_contract(self, contract_id):
        self.calls += 1
        return [template for template in self.templates if template.contractId == contract_id]


class FakeContractStore:
    def __init__(self, contracts: Optional[List[Contract]] = None):
        self.contracts: Dict[str, Contract] = {contract.id: contract for contract in contracts or []}
        self.calls = 0

    def get(self, contract_id):
        self.calls += 1
        return self.contracts.get(contract_id)


class FakeLogStore:
    def __init__(self, fail: bool = False):
        self.entries: List[ScheduleLog] = []
        self.fail = fail

    def add(self, entry):
        if self.fail:
            raise RuntimeError("log list unavailable")
        entry = entry.model_copy(update={"id": str(len(self.entries) + 1)})
        self.entries.append(entry)
        return entry.id

    def list_recent(self, employee_id=None, limit=20, period_iso=None):
        entries = [
            entry
            for entry in reversed(self.entries)
            if (not employee_id or entry.employeeId == employee_id)
            and (not period_iso or entry.periodISO == period_iso)
        ]
        return entries[:limit]


def make_settings(**overrides) -> FillSettings:
    values = {"writeDelayMs": 0, "deleteDelayMs": 0}
    values.update(overrides)
    return FillSettings(**values)


def make_engine(
    templates: Optional[List[ShiftTemplate]] = None,
    contracts: Optional[List[Contract]] = None,
    holidays: Optional[List[Holiday]] = None,
    leaves: Optional[List[LeavePeriod]] = None,
    records: Optional[FakeRecordStore] = None,
    logs: Optional[FakeLogStore] = None,
    holiday_store: Optional[FakeHolidayStore] = None,
    **settings_overrides,
) -> FillEngine:
    return FillEngine(
        records=records if records is not None else FakeRecordStore(),
        holidays=holiday_store if holiday_store is not None else FakeHolidayStore(holidays),
        leaves=FakeLeaveStore(leaves),
        templates=FakeTemplateStore(templates if templates is not None else make_week_templates()),
        contracts=FakeContractStore(contracts if contracts is not None else [make_contract()]),
        logs=logs if logs is not None else FakeLogStore(),
        settings=make_settings(**settings_overrides),
        sleep=lambda _seconds: None,
    )


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "shiftfill-test.db")
