from datetime import date
from typing import Optional

from .dates import month_bounds, normalize_optional
from .models import Contract, FillPeriod


def resolve_period(
    month: date,
    contract_start: Optional[date] = None,
    contract_finish: Optional[date] = None,
) -> FillPeriod:
    """Intersect a calendar month with a contract's active range.

    The result is empty (``firstDay > lastDay``) when the contract is not
    active at any point of the month.
    """
    start_of_month, end_of_month = month_bounds(month)
    first_day = max(start_of_month, contract_start) if contract_start else start_of_month
    last_day = min(end_of_month, contract_finish) if contract_finish else end_of_month
    return FillPeriod(firstDay=first_day, lastDay=last_day)


def resolve_contract_period(
    month: date, contract: Contract, tz_name: Optional[str] = None
) -> FillPeriod:
    return resolve_period(
        month,
        normalize_optional(contract.startDate, tz_name),
        normalize_optional(contract.finishDate, tz_name),
    )


def contract_active_in_month(
    contract: Contract, month: date, tz_name: Optional[str] = None
) -> bool:
    if contract.deleted:
        return False
    start = normalize_optional(contract.startDate, tz_name)
    if start is None:
        return False
    start_of_month, end_of_month = month_bounds(month)
    if start > end_of_month:
        return False
    finish = normalize_optional(contract.finishDate, tz_name)
    return finish is None or finish >= start_of_month
