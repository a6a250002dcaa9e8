from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import RoundingRule
from .repository import RoundingRuleRepository


class MySQLRoundingRuleRepository(RoundingRuleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self, company_id: int) -> Sequence[RoundingRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT rule_id, company_id, shift_id, name, rule_type, rounding_interval,
                       rounding_direction, grace_period_minutes, is_active
                FROM shift_rounding_rules
                WHERE company_id=%s AND is_active=1
                ORDER BY rule_id
                """,
                (int(company_id),),
            )
            rows = fetchall(cur)
            return [
                RoundingRule.from_config(
                    scope=r["rule_type"],
                    interval_minutes=int(r["rounding_interval"]),
                    direction=r["rounding_direction"],
                    grace_minutes=int(r.get("grace_period_minutes") or 0),
                    rule_id=int(r["rule_id"]),
                    company_id=int(r["company_id"]),
                    shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
                    name=r.get("name") or "",
                    is_active=bool(r["is_active"]),
                )
                for r in rows
            ]
