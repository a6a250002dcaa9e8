from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterator, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.enums import EntryMethod, EntryStatus
from ..core.exceptions import SessionConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, fetchall, fetchone
from .model import AdjustmentRecord, TimeEntry
from .repository import EntryRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    entry_id, employee_id, company_id, shift_id, clock_in, clock_out, rounded_clock_in, rounded_clock_out,
    break_start, break_end, break_duration_minutes, status, total_hours, regular_hours, overtime_hours,
    shift_differential, clock_in_method, clock_out_method, notes, adjusted_by
"""


def _decimal(value: Any) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _to_entry(r: Dict[str, Any]) -> TimeEntry:
    # Enum constructors reject unknown stored strings, so malformed rows never reach the engine.
    return TimeEntry(
        entry_id=int(r["entry_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
        clock_in=r["clock_in"],
        clock_out=r.get("clock_out"),
        rounded_clock_in=r["rounded_clock_in"],
        rounded_clock_out=r.get("rounded_clock_out"),
        break_start=r.get("break_start"),
        break_end=r.get("break_end"),
        break_duration_minutes=int(r.get("break_duration_minutes") or 0),
        status=EntryStatus(r["status"]),
        total_hours=_decimal(r.get("total_hours")),
        regular_hours=_decimal(r.get("regular_hours")),
        overtime_hours=_decimal(r.get("overtime_hours")),
        shift_differential=_decimal(r.get("shift_differential")),
        clock_in_method=EntryMethod(r["clock_in_method"]),
        clock_out_method=EntryMethod(r["clock_out_method"]) if r.get("clock_out_method") else None,
        notes=r.get("notes"),
        adjusted_by=int(r["adjusted_by"]) if r.get("adjusted_by") is not None else None,
    )


def _values(entry: TimeEntry) -> tuple:
    return (
        entry.employee_id,
        entry.company_id,
        entry.shift_id,
        entry.clock_in,
        entry.clock_out,
        entry.rounded_clock_in,
        entry.rounded_clock_out,
        entry.break_start,
        entry.break_end,
        entry.break_duration_minutes,
        entry.status.value,
        entry.total_hours,
        entry.regular_hours,
        entry.overtime_hours,
        entry.shift_differential,
        entry.clock_in_method.value,
        entry.clock_out_method.value if entry.clock_out_method else None,
        entry.notes,
        entry.adjusted_by,
    )


class _MySQLUnitOfWork:
    def __init__(self, cur, employee_id: int, company_id: int):
        self._cur = cur
        self._employee_id = employee_id
        self._company_id = company_id

    def get_open_session(self) -> Optional[TimeEntry]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM time_clock_entries
            WHERE employee_id=%s AND company_id=%s AND status IN (%s, %s)
            ORDER BY clock_in DESC
            LIMIT 1
            FOR UPDATE
            """,
            (self._employee_id, self._company_id, EntryStatus.ACTIVE.value, EntryStatus.ON_BREAK.value),
        )
        r = fetchone(self._cur)
        return _to_entry(r) if r else None

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM time_clock_entries WHERE entry_id=%s FOR UPDATE",
            (int(entry_id),),
        )
        r = fetchone(self._cur)
        return _to_entry(r) if r else None

    def save(self, entry: TimeEntry) -> TimeEntry:
        try:
            if entry.entry_id is None:
                self._cur.execute(
                    """
                    INSERT INTO time_clock_entries(
                        employee_id, company_id, shift_id, clock_in, clock_out, rounded_clock_in, rounded_clock_out,
                        break_start, break_end, break_duration_minutes, status, total_hours, regular_hours,
                        overtime_hours, shift_differential, clock_in_method, clock_out_method, notes, adjusted_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _values(entry),
                )
                return replace(entry, entry_id=int(self._cur.lastrowid))

            self._cur.execute(
                """
                UPDATE time_clock_entries
                SET employee_id=%s, company_id=%s, shift_id=%s, clock_in=%s, clock_out=%s,
                    rounded_clock_in=%s, rounded_clock_out=%s, break_start=%s, break_end=%s,
                    break_duration_minutes=%s, status=%s, total_hours=%s, regular_hours=%s,
                    overtime_hours=%s, shift_differential=%s, clock_in_method=%s, clock_out_method=%s,
                    notes=%s, adjusted_by=%s
                WHERE entry_id=%s
                """,
                _values(entry) + (entry.entry_id,),
            )
            return entry
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                logger.warning("Open session conflict employee=%s company=%s", entry.employee_id, entry.company_id)
                raise SessionConflict(f"Employee {entry.employee_id} already has an open session") from exc
            raise

    def record_adjustment(self, record: AdjustmentRecord) -> None:
        self._cur.execute(
            """
            INSERT INTO time_clock_adjustments(entry_id, actor_id, reason, before_values, after_values, adjusted_at)
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (
                record.entry_id,
                record.actor_id,
                record.reason,
                json.dumps(record.before.to_dict()),
                json.dumps(record.after.to_dict()),
                record.adjusted_at,
            ),
        )


class MySQLEntryRepository(EntryRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, lock_timeout: int = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._lock_timeout = int(lock_timeout)

    @contextmanager
    def transaction(self, employee_id: int, company_id: int) -> Iterator[_MySQLUnitOfWork]:
        lock_name = f"timeclock:{int(company_id)}:{int(employee_id)}"
        with db_transaction(self._conn_factory, lock_name=lock_name, timeout=self._lock_timeout) as (_, cur):
            yield _MySQLUnitOfWork(cur, int(employee_id), int(company_id))

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_clock_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def list_closed(self, company_id: int, start: date, end: date) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_clock_entries
                WHERE company_id=%s AND status IN (%s, %s) AND clock_in >= %s AND clock_in < %s
                ORDER BY employee_id, clock_in
                """,
                (
                    int(company_id),
                    EntryStatus.COMPLETED.value,
                    EntryStatus.ADJUSTED.value,
                    start,
                    end + timedelta(days=1),
                ),
            )
            return [_to_entry(r) for r in fetchall(cur)]
