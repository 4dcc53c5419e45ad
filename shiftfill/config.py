import os
from typing import Literal, Optional

from pydantic import BaseModel

from .constants import (
    DEFAULT_BATCH_PAUSE_MS,
    DEFAULT_DELETE_DELAY_MS,
    DEFAULT_WEEK_START_DAY,
    DEFAULT_WRITE_DELAY_MS,
    DEFAULT_WRITE_WORKERS,
)

WriteStrategy = Literal["sequential", "pool"]


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DB_PATH = os.environ.get("SHIFTFILL_DB_PATH", "shiftfill.db")
LOG_LEVEL = os.environ.get("SHIFTFILL_LOG_LEVEL", "INFO")


class FillSettings(BaseModel):
    writeStrategy: WriteStrategy = "sequential"
    writeDelayMs: int = DEFAULT_WRITE_DELAY_MS
    deleteDelayMs: int = DEFAULT_DELETE_DELAY_MS
    writeWorkers: int = DEFAULT_WRITE_WORKERS
    timezone: Optional[str] = None
    defaultWeekStartDay: int = DEFAULT_WEEK_START_DAY
    batchPauseMs: int = DEFAULT_BATCH_PAUSE_MS


def get_fill_settings() -> FillSettings:
    strategy = os.environ.get("SHIFTFILL_WRITE_STRATEGY", "sequential").strip().lower()
    if strategy not in ("sequential", "pool"):
        strategy = "sequential"
    week_start = _int_env("SHIFTFILL_DEFAULT_WEEK_START", DEFAULT_WEEK_START_DAY)
    if week_start < 1 or week_start > 7:
        week_start = DEFAULT_WEEK_START_DAY
    return FillSettings(
        writeStrategy=strategy,
        writeDelayMs=max(0, _int_env("SHIFTFILL_WRITE_DELAY_MS", DEFAULT_WRITE_DELAY_MS)),
        deleteDelayMs=max(0, _int_env("SHIFTFILL_DELETE_DELAY_MS", DEFAULT_DELETE_DELAY_MS)),
        writeWorkers=max(1, _int_env("SHIFTFILL_WRITE_WORKERS", DEFAULT_WRITE_WORKERS)),
        timezone=os.environ.get("SHIFTFILL_TIMEZONE") or None,
        defaultWeekStartDay=week_start,
        batchPauseMs=max(0, _int_env("SHIFTFILL_BATCH_PAUSE_MS", DEFAULT_BATCH_PAUSE_MS)),
    )
