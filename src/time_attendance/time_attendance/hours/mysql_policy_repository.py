from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ClockPolicy
from .policy import ClockPolicyRepository


class MySQLClockPolicyRepository(ClockPolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_company(self, company_id: int) -> Optional[ClockPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT regular_cap_hours, break_is_paid
                FROM company_clock_policies
                WHERE company_id=%s
                """,
                (int(company_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClockPolicy(
                regular_cap_hours=Decimal(str(r["regular_cap_hours"])),
                break_is_paid=bool(r["break_is_paid"]),
            )
