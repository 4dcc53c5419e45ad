import logging
import time
from typing import Callable, Iterable, List, Optional, Tuple

from .errors import ProcessingBlocked, RecordWriteError
from .models import ExistingRecord, ExistingRecordSummary, FillPeriod
from .stores import ShiftRecordStore

logger = logging.getLogger(__name__)


def is_processed(record: ExistingRecord) -> bool:
    """A record counts as processed once it was checked or exported downstream."""
    if record.checkedCount > 0:
        return True
    export_result = (record.exportResult or "").strip()
    return bool(export_result) and export_result != "0"


def classify_existing(records: Iterable[ExistingRecord]) -> ExistingRecordSummary:
    summary = ExistingRecordSummary()
    for record in records:
        summary.totalCount += 1
        if is_processed(record):
            summary.processedCount += 1
        else:
            summary.unprocessedIds.append(record.id)
    return summary


def load_existing(
    store: ShiftRecordStore,
    period: FillPeriod,
    employee_id: str,
    contract_id: Optional[str] = None,
) -> ExistingRecordSummary:
    return classify_existing(store.query(period, employee_id, contract_id))


def ensure_replaceable(summary: ExistingRecordSummary) -> None:
    if summary.has_processed():
        raise ProcessingBlocked(summary.processedCount, summary.totalCount)


def soft_delete_records(
    store: ShiftRecordStore,
    record_ids: List[str],
    delay_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[int, List[str]]:
    """Soft-delete every id in order, pausing between requests.

    Returns the number of deleted records and one error line per failure.
    """
    deleted = 0
    errors: List[str] = []
    for position, record_id in enumerate(record_ids):
        try:
            if not store.soft_delete(record_id):
                raise RecordWriteError("store reported failure")
            deleted += 1
        except Exception as exc:
            logger.error("Failed to delete record %s: %s", record_id, exc)
            errors.append(f"Error deleting record {record_id}: {exc}")
        if delay_seconds > 0 and position < len(record_ids) - 1:
            sleep(delay_seconds)
    return deleted, errors
