"""Collaborator contracts consumed by the fill engine.

Any object with matching methods can be passed to ``FillEngine``; the bundled
SQLite implementations live in ``sqlite_stores`` and tests use in-memory fakes.
Reads that cannot reach their backing store should raise
``StoreUnavailableError``; a rejected single write may raise
``RecordWriteError``.
"""

from datetime import date
from typing import List, Optional, Protocol

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


class ShiftRecordStore(Protocol):
    def query(
        self, period: FillPeriod, employee_id: str, contract_id: Optional[str] = None
    ) -> List[ExistingRecord]: ...

    def create(
        self,
        record: GeneratedRecord,
        manager_id: Optional[str],
        group_id: Optional[str],
        employee_id: str,
    ) -> Optional[str]: ...

    def soft_delete(self, record_id: str) -> bool: ...


class HolidayStore(Protocol):
    def get_by_month(self, month: date) -> List[Holiday]: ...


class LeaveStore(Protocol):
    def get_by_month(
        self,
        month: date,
        employee_id: str,
        manager_id: Optional[str],
        group_id: Optional[str],
    ) -> List[LeavePeriod]: ...


class TemplateStore(Protocol):
    def get_by_contract(self, contract_id: str) -> List[ShiftTemplate]: ...


class ContractStore(Protocol):
    def get(self, contract_id: str) -> Optional[Contract]: ...


class ScheduleLogStore(Protocol):
    def add(self, entry: ScheduleLog) -> Optional[str]: ...

    def list_recent(
        self, employee_id: Optional[str], limit: int, period_iso: Optional[str] = None
    ) -> List[ScheduleLog]: ...
