from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from .config import DB_PATH, get_fill_settings
from .dates import parse_month
from .engine import FillEngine
from .errors import FillValidationError, InvalidDate, StoreUnavailableError
from .models import (
    BatchFillRequest,
    BatchFillResult,
    FillCheck,
    FillPreview,
    FillRequest,
    FillResult,
    ScheduleLog,
)
from .sqlite_stores import (
    SqliteContractStore,
    SqliteHolidayStore,
    SqliteLeaveStore,
    SqliteScheduleLogStore,
    SqliteShiftRecordStore,
    SqliteTemplateStore,
)

router = APIRouter()


def get_engine() -> FillEngine:
    return FillEngine(
        records=SqliteShiftRecordStore(DB_PATH),
        holidays=SqliteHolidayStore(DB_PATH),
        leaves=SqliteLeaveStore(DB_PATH),
        templates=SqliteTemplateStore(DB_PATH),
        contracts=SqliteContractStore(DB_PATH),
        logs=SqliteScheduleLogStore(DB_PATH),
        settings=get_fill_settings(),
    )


def _raise_http(exc: Exception) -> None:
    if isinstance(exc, FillValidationError):
        raise HTTPException(
            status_code=400, detail={"code": exc.code, "message": exc.message}
        ) from exc
    raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/v1/fill", response_model=FillResult)
def fill_schedule(payload: FillRequest, engine: FillEngine = Depends(get_engine)):
    return engine.fill(payload)


@router.post("/v1/fill/check", response_model=FillCheck)
def check_fill(payload: FillRequest, engine: FillEngine = Depends(get_engine)):
    try:
        return engine.check(payload)
    except (FillValidationError, StoreUnavailableError) as exc:
        _raise_http(exc)


@router.post("/v1/fill/preview", response_model=FillPreview)
def preview_fill(payload: FillRequest, engine: FillEngine = Depends(get_engine)):
    try:
        return engine.preview(payload)
    except (FillValidationError, StoreUnavailableError) as exc:
        _raise_http(exc)


@router.get("/v1/fill/logs", response_model=List[ScheduleLog])
def list_fill_logs(
    employeeId: Optional[str] = None,
    month: Optional[str] = None,
    limit: int = Query(20, ge=1, le=200),
    engine: FillEngine = Depends(get_engine),
):
    if engine.logs is None:
        return []
    period_iso = None
    if month is not None and month.strip():
        try:
            period_iso = parse_month(month).isoformat()
        except InvalidDate as exc:
            raise HTTPException(status_code=400, detail="Invalid date.") from exc
    try:
        return engine.logs.list_recent(employeeId, limit, period_iso)
    except StoreUnavailableError as exc:
        _raise_http(exc)


@router.post("/v1/fill/batch", response_model=BatchFillResult)
def batch_fill(payload: BatchFillRequest, engine: FillEngine = Depends(get_engine)):
    pause_seconds = None if payload.pauseMs is None else payload.pauseMs / 1000
    return engine.fill_batch(payload.items, pause_seconds)
