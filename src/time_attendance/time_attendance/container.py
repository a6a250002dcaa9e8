from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .core.constants import DEFAULT_BREAK_IS_PAID, DEFAULT_LOCK_TIMEOUT_SECONDS, DEFAULT_REGULAR_CAP_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .hours.calculator.standard_calculator import StandardHoursCalculator
from .hours.model import ClockPolicy
from .hours.mysql_policy_repository import MySQLClockPolicyRepository
from .hours.policy import ClockPolicyResolver
from .payroll.service import PayrollSyncService
from .rounding.mysql_rounding_repository import MySQLRoundingRuleRepository
from .rounding.policy import RoundingPolicy
from .shifts.context import ShiftContext
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .timeclock.mysql_entry_repository import MySQLEntryRepository
from .timeclock.repository import EntryRepository
from .timeclock.session import ClockSession


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    entries_repo: EntryRepository
    rounding_policy: RoundingPolicy
    shift_context: ShiftContext
    policy_resolver: ClockPolicyResolver

    clock_session: ClockSession
    payroll_sync_service: PayrollSyncService


def build_container(
    *,
    db_config: dict,
    regular_cap_hours: Decimal = DEFAULT_REGULAR_CAP_HOURS,
    break_is_paid: bool = DEFAULT_BREAK_IS_PAID,
    lock_timeout: int = DEFAULT_LOCK_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    entries_repo = MySQLEntryRepository(conn, lock_timeout=lock_timeout)
    rounding_policy = RoundingPolicy(MySQLRoundingRuleRepository(conn))
    shift_context = ShiftContext(MySQLShiftRepository(conn))
    policy_resolver = ClockPolicyResolver(
        MySQLClockPolicyRepository(conn),
        default=ClockPolicy(regular_cap_hours=regular_cap_hours, break_is_paid=bool(break_is_paid)),
    )

    clock_session = ClockSession(
        entries_repo,
        rounding_policy,
        shift_context,
        policy_resolver,
        calculator=StandardHoursCalculator(),
    )
    payroll_sync_service = PayrollSyncService(entries_repo, policy_resolver)

    return Container(
        conn=conn,
        entries_repo=entries_repo,
        rounding_policy=rounding_policy,
        shift_context=shift_context,
        policy_resolver=policy_resolver,
        clock_session=clock_session,
        payroll_sync_service=payroll_sync_service,
    )
