import logging
import time
from datetime import date
from typing import Callable, Iterable, List, Optional, TypeVar

from .config import FillSettings, get_fill_settings
from .conflicts import ensure_replaceable, load_existing, soft_delete_records
from .dates import parse_month
from .errors import (
    FillValidationError,
    InvalidDate,
    ProcessingBlocked,
    StoreUnavailableError,
)
from .fill_log import build_fill_log_message, build_log_entry, write_fill_log
from .generator import (
    plan_days,
    records_from_plans,
    render_records_report,
    summarize_records,
    validate_generated_records,
)
from .indexes import HolidayIndex, LeaveIndex, TemplateIndex
from .models import (
    BatchFillEntry,
    BatchFillItem,
    BatchFillResult,
    Contract,
    DayPlan,
    FillCheck,
    FillEligibility,
    FillPeriod,
    FillPreview,
    FillRequest,
    FillResult,
    GeneratedRecord,
    Holiday,
    LeavePeriod,
    ShiftTemplate,
    WeekRotation,
)
from .period import contract_active_in_month, resolve_contract_period
from .persistence import SaveContext, make_writer, save_generated_records
from .rotation import build_rotation, describe_rotation
from .stores import (
    ContractStore,
    HolidayStore,
    LeaveStore,
    ScheduleLogStore,
    ShiftRecordStore,
    TemplateStore,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _FillContext:
    def __init__(self, month: date, week_start: int, contract: Contract, period: FillPeriod):
        self.month = month
        self.week_start = week_start
        self.contract = contract
        self.period = period


class _FillInputs:
    def __init__(
        self,
        holidays: List[Holiday],
        leaves: List[LeavePeriod],
        templates: List[ShiftTemplate],
    ):
        self.holidays = holidays
        self.leaves = leaves
        self.templates = templates


class _Generation:
    def __init__(
        self,
        rotation: WeekRotation,
        template_index: TemplateIndex,
        holiday_index: HolidayIndex,
        leave_index: LeaveIndex,
        plans: List[DayPlan],
        records: List[GeneratedRecord],
    ):
        self.rotation = rotation
        self.template_index = template_index
        self.holiday_index = holiday_index
        self.leave_index = leave_index
        self.plans = plans
        self.records = records


def _read(what: str, call: Callable[[], T]) -> T:
    try:
        return call()
    except StoreUnavailableError:
        raise
    except Exception as exc:
        raise StoreUnavailableError(f"Could not load {what}: {exc}") from exc


class FillEngine:
    """Generates a month of shift records for one employee and contract.

    Collaborators are passed in explicitly; ``fill`` always returns a
    ``FillResult`` and never raises for domain or store failures.
    """

    def __init__(
        self,
        records: ShiftRecordStore,
        holidays: HolidayStore,
        leaves: LeaveStore,
        templates: TemplateStore,
        contracts: ContractStore,
        logs: Optional[ScheduleLogStore] = None,
        settings: Optional[FillSettings] = None,
        writer=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.records = records
        self.holidays = holidays
        self.leaves = leaves
        self.templates = templates
        self.contracts = contracts
        self.logs = logs
        self.settings = settings or get_fill_settings()
        self.writer = writer or make_writer(self.settings)
        self._sleep = sleep

    def _prepare(self, params: FillRequest) -> _FillContext:
        if not params.employeeId or not params.employeeId.strip():
            raise FillValidationError("missing_employee", "Staff member has no employee ID.")
        if not params.contractId or not params.contractId.strip():
            raise FillValidationError("missing_contract", "No contract selected.")
        try:
            month = parse_month(params.selectedMonth, self.settings.timezone)
        except InvalidDate as exc:
            raise FillValidationError("invalid_date", f"Invalid selected month: {exc}") from exc
        week_start = params.rotationStartOfWeekDay
        if week_start is None:
            week_start = self.settings.defaultWeekStartDay
        if week_start < 1 or week_start > 7:
            raise FillValidationError(
                "invalid_week_start", f"Start of week day must be 1-7, got {week_start}."
            )

        contract = _read("contract", lambda: self.contracts.get(params.contractId))
        if contract is None:
            raise FillValidationError(
                "contract_not_found", f"Contract {params.contractId} not found."
            )
        if contract.deleted:
            raise FillValidationError(
                "contract_deleted", f"Contract {params.contractId} is deleted."
            )
        try:
            period = resolve_contract_period(month, contract, self.settings.timezone)
        except InvalidDate as exc:
            raise FillValidationError("invalid_date", f"Invalid contract dates: {exc}") from exc
        return _FillContext(month, week_start, contract, period)

    def _load_inputs(self, ctx: _FillContext, params: FillRequest) -> _FillInputs:
        holidays = _read("holidays", lambda: self.holidays.get_by_month(ctx.month))
        leaves = _read(
            "leaves",
            lambda: self.leaves.get_by_month(
                ctx.month, params.employeeId, params.managerId, params.groupId
            ),
        )
        templates = _read(
            "weekly templates", lambda: self.templates.get_by_contract(ctx.contract.id)
        )
        logger.info(
            "Loaded %d holidays, %d leaves, %d templates for contract %s",
            len(holidays),
            len(leaves),
            len(templates),
            ctx.contract.id,
        )
        return _FillInputs(holidays, leaves, templates)

    def _generate(self, ctx: _FillContext, inputs: _FillInputs) -> _Generation:
        tz_name = self.settings.timezone
        template_index = TemplateIndex.build(inputs.templates)
        holiday_index = HolidayIndex.build(inputs.holidays, tz_name)
        leave_index = LeaveIndex.build(inputs.leaves, tz_name)
        rotation = build_rotation(template_index.templates(), ctx.week_start)
        plans = plan_days(ctx.period, rotation, template_index, holiday_index, leave_index)
        return _Generation(
            rotation,
            template_index,
            holiday_index,
            leave_index,
            plans,
            records_from_plans(plans),
        )

    def fill(self, params: FillRequest) -> FillResult:
        logger.info(
            "Starting fill for employee %s, contract %s, month %s",
            params.employeeId,
            params.contractId,
            params.selectedMonth,
        )
        details: dict = {}
        result = self._run_fill(params, details)
        logger.info(
            "Fill finished with status %s: generated=%d saved=%d deleted=%d errors=%d",
            result.status,
            result.generatedCount,
            result.savedCount,
            result.deletedCount,
            len(result.errors),
        )
        message = build_fill_log_message(params, result, **details)
        write_fill_log(self.logs, build_log_entry(params, result, message))
        return result

    def _run_fill(self, params: FillRequest, details: dict) -> FillResult:
        try:
            ctx = self._prepare(params)
        except FillValidationError as exc:
            logger.warning("Fill rejected (%s): %s", exc.code, exc.message)
            return FillResult(status="failed", reasonCode=exc.code, message=exc.message)
        except StoreUnavailableError as exc:
            logger.error("Fill aborted, store unavailable: %s", exc)
            return FillResult(status="failed", reasonCode="store_unavailable", message=str(exc))

        details["month"] = ctx.month
        details["week_start_day"] = ctx.week_start
        if ctx.period.is_empty():
            return FillResult(
                status="completed",
                message="Contract is not active in the selected month.",
                period=ctx.period,
            )

        try:
            summary = _read(
                "existing records",
                lambda: load_existing(
                    self.records, ctx.period, params.employeeId, params.contractId
                ),
            )
            ensure_replaceable(summary)
            inputs = self._load_inputs(ctx, params)
        except ProcessingBlocked as exc:
            logger.warning(
                "Fill blocked: %d of %d existing records processed",
                exc.processed_count,
                exc.total_count,
            )
            return FillResult(
                status="blocked",
                blockingReason=str(exc),
                reasonCode="processed_records",
                message=str(exc),
                period=ctx.period,
            )
        except StoreUnavailableError as exc:
            logger.error("Fill aborted, store unavailable: %s", exc)
            return FillResult(
                status="failed",
                reasonCode="store_unavailable",
                message=str(exc),
                period=ctx.period,
            )

        deleted = 0
        if summary.unprocessedIds:
            logger.info(
                "Deleting %d existing records before creating new ones",
                len(summary.unprocessedIds),
            )
            deleted, delete_errors = soft_delete_records(
                self.records,
                summary.unprocessedIds,
                self.settings.deleteDelayMs / 1000,
                self._sleep,
            )
            if delete_errors:
                return FillResult(
                    status="failed",
                    deletedCount=deleted,
                    errors=delete_errors,
                    reasonCode="delete_failed",
                    message="Failed to delete existing records. Fill operation cancelled.",
                    period=ctx.period,
                )

        generation = self._generate(ctx, inputs)
        details["rotation"] = generation.rotation
        details["holidays"] = generation.holiday_index.in_range(
            ctx.period.firstDay, ctx.period.lastDay
        )
        details["leaves"] = generation.leave_index.overlapping(
            ctx.period.firstDay, ctx.period.lastDay
        )
        records = generation.records
        if not records:
            if len(generation.template_index) == 0:
                message = "No weekly schedule templates found for the selected contract."
            else:
                message = "No schedule records generated for the selected period."
            return FillResult(
                status="completed",
                deletedCount=deleted,
                message=message,
                period=ctx.period,
            )

        save = save_generated_records(
            self.records,
            records,
            SaveContext(
                employeeId=params.employeeId,
                managerId=params.managerId,
                groupId=params.groupId,
            ),
            self.writer,
        )
        if save.successCount == len(records):
            status = "completed"
            message = f"Successfully generated {save.successCount} schedule records."
        elif save.successCount > 0:
            status = "partial"
            message = (
                f"Generated {save.successCount} of {len(records)} records. "
                "Some records failed to save."
            )
        else:
            status = "failed"
            message = f"None of the {len(records)} generated records could be saved."
        return FillResult(
            status=status,
            generatedCount=len(records),
            savedCount=save.successCount,
            deletedCount=deleted,
            errors=save.errors,
            message=message,
            period=ctx.period,
        )

    def check(self, params: FillRequest) -> FillCheck:
        """Classify existing records without writing anything.

        Raises ``FillValidationError`` or ``StoreUnavailableError``.
        """
        ctx = self._prepare(params)
        if ctx.period.is_empty():
            return FillCheck(
                action="fill",
                message="Contract is not active in the selected month.",
                period=ctx.period,
            )
        summary = _read(
            "existing records",
            lambda: load_existing(self.records, ctx.period, params.employeeId, params.contractId),
        )
        if summary.has_processed():
            return FillCheck(
                action="blocked",
                existingCount=summary.totalCount,
                processedCount=summary.processedCount,
                message=str(ProcessingBlocked(summary.processedCount, summary.totalCount)),
                period=ctx.period,
            )
        if summary.totalCount:
            return FillCheck(
                action="replace",
                existingCount=summary.totalCount,
                message=(
                    f"Found {summary.totalCount} existing records for this period. "
                    "Please confirm replacement."
                ),
                period=ctx.period,
            )
        return FillCheck(action="fill", message="No existing records for this period.", period=ctx.period)

    def preview(self, params: FillRequest) -> FillPreview:
        ctx = self._prepare(params)
        inputs = self._load_inputs(ctx, params)
        generation = self._generate(ctx, inputs)
        records = generation.records
        return FillPreview(
            period=ctx.period,
            rotation=generation.rotation,
            rotationDescription=describe_rotation(generation.rotation.rotationLength),
            records=records,
            days=generation.plans,
            statistics=summarize_records(records),
            validation=validate_generated_records(records),
            report=render_records_report(records),
        )

    def check_eligibility(self, params: FillRequest) -> FillEligibility:
        """Decide whether an unattended fill may run for ``params``.

        Nothing is written. Every refusal carries a reason; store failures
        make the staff member ineligible instead of raising.
        """
        try:
            ctx = self._prepare(params)
        except FillValidationError as exc:
            return FillEligibility(eligible=False, reason=f"Validation failed: {exc.message}")
        except StoreUnavailableError as exc:
            return FillEligibility(eligible=False, reason=f"Error checking eligibility: {exc}")

        contract_id = ctx.contract.id
        if not contract_active_in_month(ctx.contract, ctx.month, self.settings.timezone):
            return FillEligibility(
                eligible=False,
                reason="No active contracts found for this staff member in the selected period",
            )
        try:
            templates = _read(
                "weekly templates", lambda: self.templates.get_by_contract(contract_id)
            )
            summary = _read(
                "existing records",
                lambda: load_existing(self.records, ctx.period, params.employeeId, contract_id),
            )
        except StoreUnavailableError as exc:
            return FillEligibility(
                eligible=False,
                reason=f"Error checking eligibility: {exc}",
                contractId=contract_id,
            )
        if len(TemplateIndex.build(templates)) == 0:
            return FillEligibility(
                eligible=False,
                reason="No weekly schedule templates found after filtering",
                contractId=contract_id,
            )
        if summary.has_processed():
            return FillEligibility(
                eligible=False,
                reason="Has processed records (Checked>0 or ExportResult>0)",
                hasProcessedRecords=True,
                contractId=contract_id,
            )
        reason = "Will replace existing unprocessed records" if summary.totalCount else None
        return FillEligibility(eligible=True, reason=reason, contractId=contract_id)

    def fill_batch(
        self,
        items: Iterable[BatchFillItem],
        pause_seconds: Optional[float] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> BatchFillResult:
        """Run ``fill`` for every staff member flagged for auto scheduling.

        Staff are processed in order with a pause between consecutive runs.
        One failing staff member never stops the batch.
        """
        started = time.monotonic()
        if pause_seconds is None:
            pause_seconds = self.settings.batchPauseMs / 1000
        sleep = sleep or self._sleep
        items = list(items)
        scheduled = [item for item in items if item.autoSchedule]
        logger.info(
            "Starting batch auto-fill for %d of %d staff members", len(scheduled), len(items)
        )

        batch = BatchFillResult(totalProcessed=len(scheduled))
        for position, item in enumerate(scheduled):
            entry = self._fill_one(item)
            batch.results.append(entry)
            if entry.success:
                batch.successCount += 1
            elif entry.skipReason is not None:
                batch.skippedCount += 1
            else:
                batch.errorCount += 1
            if pause_seconds > 0 and position < len(scheduled) - 1:
                sleep(pause_seconds)

        batch.executionTimeMs = int((time.monotonic() - started) * 1000)
        logger.info(
            "Batch auto-fill finished: success=%d skipped=%d errors=%d in %d ms",
            batch.successCount,
            batch.skippedCount,
            batch.errorCount,
            batch.executionTimeMs,
        )
        return batch

    def _fill_one(self, item: BatchFillItem) -> BatchFillEntry:
        try:
            eligibility = self.check_eligibility(item.request)
            if not eligibility.eligible:
                logger.info(
                    "Skipping auto-fill for %s: %s",
                    item.staffName or item.staffId,
                    eligibility.reason,
                )
                return BatchFillEntry(
                    staffId=item.staffId,
                    staffName=item.staffName,
                    success=False,
                    message=eligibility.reason or "",
                    skipReason=eligibility.reason or "",
                )
            outcome = self.fill(item.request)
        except Exception as exc:
            logger.exception("Auto-fill for %s failed", item.staffName or item.staffId)
            return BatchFillEntry(
                staffId=item.staffId,
                staffName=item.staffName,
                success=False,
                message=str(exc),
            )

        if outcome.status in ("completed", "partial"):
            return BatchFillEntry(
                staffId=item.staffId,
                staffName=item.staffName,
                success=True,
                message=outcome.message,
                createdRecords=outcome.savedCount,
            )
        if outcome.status == "blocked":
            reason = outcome.blockingReason or outcome.message
            return BatchFillEntry(
                staffId=item.staffId,
                staffName=item.staffName,
                success=False,
                message=outcome.message,
                skipReason=reason,
            )
        return BatchFillEntry(
            staffId=item.staffId,
            staffName=item.staffName,
            success=False,
            message=outcome.message,
        )
