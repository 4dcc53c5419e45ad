import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel

from .config import FillSettings
from .models import GeneratedRecord, SaveResult
from .stores import ShiftRecordStore

logger = logging.getLogger(__name__)

Outcome = Tuple[Optional[str], Optional[str]]


class SaveContext(BaseModel):
    employeeId: str
    managerId: Optional[str] = None
    groupId: Optional[str] = None


def _create_one(
    store: ShiftRecordStore, record: GeneratedRecord, position: int, context: SaveContext
) -> Outcome:
    day = record.date.isoformat()
    try:
        record_id = store.create(record, context.managerId, context.groupId, context.employeeId)
    except Exception as exc:
        logger.error("Failed to create record %r for %s: %s", record.title, day, exc)
        return None, f"Error creating record {position + 1} ({record.title}) for {day}: {exc}"
    if not record_id:
        logger.error("Store returned no id for record %r on %s", record.title, day)
        return None, f"Failed to create record {record.title} for {day}: No ID returned"
    return str(record_id), None


def _collect(outcomes: List[Outcome], total: int) -> SaveResult:
    result = SaveResult(totalRecords=total)
    for record_id, error in outcomes:
        if error is not None:
            result.errors.append(error)
        else:
            result.successCount += 1
            result.createdIds.append(record_id)
    return result


class SequentialWriter:
    """Writes records one at a time with a fixed pause between requests."""

    def __init__(self, delay_seconds: float = 0.1, sleep: Callable[[float], None] = time.sleep):
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def save(
        self, store: ShiftRecordStore, records: List[GeneratedRecord], context: SaveContext
    ) -> SaveResult:
        outcomes: List[Outcome] = []
        for position, record in enumerate(records):
            outcomes.append(_create_one(store, record, position, context))
            if self.delay_seconds > 0 and position < len(records) - 1:
                self._sleep(self.delay_seconds)
        return _collect(outcomes, len(records))


class BoundedPoolWriter:
    """Writes records from a small thread pool.

    Submissions are still spaced by ``delay_seconds`` and errors are reported
    in record order.
    """

    def __init__(
        self,
        max_workers: int = 4,
        delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def save(
        self, store: ShiftRecordStore, records: List[GeneratedRecord], context: SaveContext
    ) -> SaveResult:
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = []
            for position, record in enumerate(records):
                futures.append(executor.submit(_create_one, store, record, position, context))
                if self.delay_seconds > 0 and position < len(records) - 1:
                    self._sleep(self.delay_seconds)
            outcomes = [future.result() for future in futures]
        return _collect(outcomes, len(records))


def make_writer(settings: FillSettings):
    delay = settings.writeDelayMs / 1000
    if settings.writeStrategy == "pool":
        return BoundedPoolWriter(max_workers=settings.writeWorkers, delay_seconds=delay)
    return SequentialWriter(delay_seconds=delay)


def save_generated_records(
    store: ShiftRecordStore,
    records: List[GeneratedRecord],
    context: SaveContext,
    writer=None,
) -> SaveResult:
    writer = writer or SequentialWriter(delay_seconds=0)
    result = writer.save(store, records, context)
    logger.info(
        "Saved %d of %d records (%d errors)",
        result.successCount,
        result.totalRecords,
        len(result.errors),
    )
    return result
