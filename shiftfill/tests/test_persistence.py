from datetime import date, timedelta

from shiftfill.persistence import (
    BoundedPoolWriter,
    SaveContext,
    SequentialWriter,
    make_writer,
    save_generated_records,
)

from .conftest import FakeRecordStore, make_record, make_settings

CONTEXT = SaveContext(employeeId="e1", managerId="m1", groupId="g1")


def _records(count: int):
    start = date(2024, 10, 1)
    return [make_record(start + timedelta(days=offset)) for offset in range(count)]


class TestSequentialWriter:
    """Per-record failures are isolated and reported."""

    def test_fourth_create_failing_keeps_the_other_nine(self) -> None:
        store = FakeRecordStore(fail_on_calls=[4])
        result = SequentialWriter(delay_seconds=0).save(store, _records(10), CONTEXT)
        assert result.successCount == 9
        assert result.totalRecords == 10
        assert len(result.errors) == 1
        assert "2024-10-04" in result.errors[0]
        assert store.create_calls == 10
        assert len(store.created) == 9

    def test_missing_id_counts_as_failure(self) -> None:
        store = FakeRecordStore(no_id_on_calls=[2])
        result = SequentialWriter(delay_seconds=0).save(store, _records(3), CONTEXT)
        assert result.successCount == 2
        assert result.errors == [
            "Failed to create record Template=c1 Week=1 Shift=1 for 2024-10-02: No ID returned"
        ]
        assert result.createdIds == ["new-1", "new-3"]

    def test_pauses_between_writes_only(self) -> None:
        pauses = []
        writer = SequentialWriter(delay_seconds=0.1, sleep=pauses.append)
        writer.save(FakeRecordStore(), _records(4), CONTEXT)
        assert pauses == [0.1, 0.1, 0.1]

    def test_empty_batch(self) -> None:
        result = SequentialWriter(delay_seconds=0).save(FakeRecordStore(), [], CONTEXT)
        assert result.successCount == 0
        assert result.totalRecords == 0


class TestBoundedPoolWriter:
    def test_errors_reported_in_record_order(self) -> None:
        store = FakeRecordStore(fail_on_calls=[2, 7])
        # One worker keeps call numbers aligned with record positions.
        result = BoundedPoolWriter(max_workers=1, delay_seconds=0).save(store, _records(10), CONTEXT)
        assert result.successCount == 8
        assert len(result.errors) == 2
        assert "2024-10-02" in result.errors[0]
        assert "2024-10-07" in result.errors[1]

    def test_several_workers_save_everything(self) -> None:
        store = FakeRecordStore()
        result = BoundedPoolWriter(max_workers=3, delay_seconds=0).save(store, _records(12), CONTEXT)
        assert result.successCount == 12
        assert result.errors == []
        assert len(store.created) == 12


class TestMakeWriter:
    def test_sequential_is_default(self) -> None:
        writer = make_writer(make_settings(writeDelayMs=100))
        assert isinstance(writer, SequentialWriter)
        assert writer.delay_seconds == 0.1

    def test_pool_strategy(self) -> None:
        writer = make_writer(make_settings(writeStrategy="pool", writeWorkers=2))
        assert isinstance(writer, BoundedPoolWriter)
        assert writer.max_workers == 2


def test_save_generated_records_defaults_to_sequential() -> None:
    store = FakeRecordStore(fail_on_calls=[1])
    result = save_generated_records(store, _records(2), CONTEXT)
    assert result.successCount == 1
    assert len(result.errors) == 1
