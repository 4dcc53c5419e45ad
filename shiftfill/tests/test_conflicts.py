import pytest

from shiftfill.conflicts import (
    classify_existing,
    ensure_replaceable,
    is_processed,
    soft_delete_records,
)
from shiftfill.errors import ProcessingBlocked

from .conftest import FakeRecordStore, make_existing


class TestIsProcessed:
    """Checked or exported records must not be replaced."""

    def test_checked_record_is_processed(self) -> None:
        assert is_processed(make_existing(checked=1))

    def test_exported_record_is_processed(self) -> None:
        assert is_processed(make_existing(export_result="exported"))

    @pytest.mark.parametrize("export_result", ["", "   ", "0", " 0 ", None])
    def test_unprocessed_export_values(self, export_result) -> None:
        assert not is_processed(make_existing(export_result=export_result))


class TestClassifyExisting:
    def test_counts_and_unprocessed_ids(self) -> None:
        summary = classify_existing(
            [
                make_existing("r1"),
                make_existing("r2", checked=2),
                make_existing("r3", export_result="0"),
            ]
        )
        assert summary.totalCount == 3
        assert summary.processedCount == 1
        assert summary.unprocessedIds == ["r1", "r3"]

    def test_no_existing_records(self) -> None:
        summary = classify_existing([])
        assert summary.totalCount == 0
        assert not summary.has_processed()
        ensure_replaceable(summary)

    def test_processed_records_block(self) -> None:
        summary = classify_existing([make_existing("r1", checked=1), make_existing("r2")])
        with pytest.raises(ProcessingBlocked) as excinfo:
            ensure_replaceable(summary)
        assert excinfo.value.processed_count == 1
        assert excinfo.value.total_count == 2
        assert "1 of 2 records have been processed" in str(excinfo.value)


class TestSoftDeleteRecords:
    def test_deletes_in_order_with_pauses(self) -> None:
        store = FakeRecordStore()
        pauses = []
        deleted, errors = soft_delete_records(store, ["a", "b", "c"], 0.05, pauses.append)
        assert deleted == 3
        assert errors == []
        assert store.deleted_ids == ["a", "b", "c"]
        assert pauses == [0.05, 0.05]

    def test_failures_are_reported(self) -> None:
        store = FakeRecordStore(fail_delete_ids=["b"])
        deleted, errors = soft_delete_records(store, ["a", "b", "c"])
        assert deleted == 2
        assert len(errors) == 1
        assert "b" in errors[0]

    def test_false_return_counts_as_failure(self) -> None:
        class RefusingStore(FakeRecordStore):
            def soft_delete(self, record_id):
                return False

        deleted, errors = soft_delete_records(RefusingStore(), ["a"])
        assert deleted == 0
        assert len(errors) == 1
