import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional, Set

from .config import DB_PATH
from .constants import DAY_KEYS
from .errors import StoreUnavailableError

_SCHEMA_READY: Set[str] = set()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _utcnow_iso() -> str:
    return _utcnow().isoformat()


def _weekday_columns() -> str:
    return ",\n".join(f"{key}_start TEXT, {key}_end TEXT" for key in DAY_KEYS)


def _ensure_schema(conn: sqlite3.Connection, db_path: str) -> None:
    if db_path in _SCHEMA_READY:
        return

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS contracts (
            id TEXT PRIMARY KEY,
            employee_id TEXT,
            title TEXT NOT NULL DEFAULT '',
            start_date TEXT,
            finish_date TEXT,
            deleted INTEGER NOT NULL DEFAULT 0
        )
        """
    )
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS weekly_time_rows (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            contract_id TEXT NOT NULL,
            week_number INTEGER NOT NULL,
            shift_number INTEGER NOT NULL DEFAULT 1,
            lunch_minutes INTEGER NOT NULL DEFAULT 30,
            {_weekday_columns()},
            deleted INTEGER NOT NULL DEFAULT 0
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS holidays (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date_iso TEXT NOT NULL,
            title TEXT NOT NULL DEFAULT ''
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS leaves (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            employee_id TEXT NOT NULL,
            manager_id TEXT,
            group_id TEXT,
            start_date TEXT NOT NULL,
            end_date TEXT,
            leave_type_id TEXT,
            title TEXT NOT NULL DEFAULT '',
            deleted INTEGER NOT NULL DEFAULT 0
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS shift_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            employee_id TEXT NOT NULL,
            manager_id TEXT,
            group_id TEXT,
            contract_id TEXT,
            date_iso TEXT NOT NULL,
            start_hour INTEGER NOT NULL,
            start_minute INTEGER NOT NULL,
            end_hour INTEGER NOT NULL,
            end_minute INTEGER NOT NULL,
            lunch_minutes INTEGER NOT NULL DEFAULT 0,
            shift_number INTEGER NOT NULL DEFAULT 1,
            holiday INTEGER NOT NULL DEFAULT 0,
            leave_type_id TEXT,
            title TEXT NOT NULL DEFAULT '',
            checked INTEGER NOT NULL DEFAULT 0,
            export_result TEXT NOT NULL DEFAULT '',
            deleted INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_shift_records_employee_date
        ON shift_records (employee_id, date_iso)
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schedule_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            result INTEGER NOT NULL,
            message TEXT NOT NULL DEFAULT '',
            period_iso TEXT,
            employee_id TEXT,
            manager_id TEXT,
            group_id TEXT,
            contract_id TEXT,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.commit()
    if db_path != ":memory:":
        _SCHEMA_READY.add(db_path)


def _get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    path = db_path or DB_PATH
    try:
        conn = sqlite3.connect(path)
    except sqlite3.Error as exc:
        raise StoreUnavailableError(f"Cannot open database {path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    _ensure_schema(conn, path)
    return conn


@contextmanager
def connection(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    conn = _get_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()
