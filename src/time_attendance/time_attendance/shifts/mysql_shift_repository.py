from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import DifferentialWindow, Shift, ShiftAssignment
from .repository import ShiftAssignmentRepository


def _parse_days(value: Optional[str]):
    if value is None or not str(value).strip():
        return None
    return frozenset(int(p) for p in str(value).split(",") if p.strip())


def _to_shift(r: Dict[str, Any]) -> Shift:
    differential = None
    if r.get("diff_start_time") is not None and r.get("diff_end_time") is not None:
        differential = DifferentialWindow(
            start_time=normalize_mysql_time(r["diff_start_time"]),
            end_time=normalize_mysql_time(r["diff_end_time"]),
            rate=Decimal(str(r.get("diff_rate") or 0)),
            days_of_week=_parse_days(r.get("diff_days_of_week")),
        )
    paid = r.get("break_is_paid")
    return Shift(
        shift_id=int(r["shift_id"]),
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        is_overnight=bool(r.get("is_overnight") or 0),
        break_minutes=int(r.get("break_minutes") or 0),
        break_is_paid=None if paid is None else bool(paid),
        differential=differential,
    )


class MySQLShiftRepository(ShiftAssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_assignments(self, employee_id: int, company_id: Optional[int] = None) -> Sequence[ShiftAssignment]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if company_id is not None:
            clauses.append("company_id=%s")
            params.append(int(company_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT assignment_id, employee_id, company_id, shift_id, effective_date, end_date, is_primary
                FROM employee_shift_assignments
                WHERE {" AND ".join(clauses)}
                ORDER BY effective_date
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            return [
                ShiftAssignment(
                    assignment_id=int(r["assignment_id"]),
                    employee_id=int(r["employee_id"]),
                    company_id=int(r["company_id"]),
                    shift_id=int(r["shift_id"]),
                    effective_date=r["effective_date"],
                    end_date=r.get("end_date"),
                    is_primary=bool(r["is_primary"]),
                )
                for r in rows
            ]

    def get_shift(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT shift_id, shift_name, start_time, end_time, is_overnight, break_minutes, break_is_paid,
                       diff_start_time, diff_end_time, diff_rate, diff_days_of_week
                FROM shifts
                WHERE shift_id=%s
                """,
                (int(shift_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _to_shift(r)
