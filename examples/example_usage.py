"""Example: drive the clock engine directly (no Flask, no MySQL).

Controllers are thin; punches, rounding and hours all live in ClockSession.
"""

from datetime import date, datetime, time
from decimal import Decimal

from src.time_attendance.time_attendance.core.enums import RoundingDirection, RoundingScope
from src.time_attendance.time_attendance.payroll.service import PayrollSyncService
from src.time_attendance.time_attendance.rounding.model import RoundingRule
from src.time_attendance.time_attendance.rounding.policy import RoundingPolicy
from src.time_attendance.time_attendance.shifts.context import ShiftContext
from src.time_attendance.time_attendance.shifts.model import DifferentialWindow, Shift, ShiftAssignment
from src.time_attendance.time_attendance.timeclock.memory_repository import InMemoryEntryRepository
from src.time_attendance.time_attendance.timeclock.session import ClockSession

NIGHT = Shift(
    shift_id=2,
    shift_name="Night",
    start_time=time(22, 0),
    end_time=time(6, 0),
    is_overnight=True,
    break_minutes=30,
    differential=DifferentialWindow(start_time=time(22, 0), end_time=time(6, 0), rate=Decimal("1.50")),
)


class DemoRules:
    def list_active(self, company_id):
        return [
            RoundingRule(
                scope=RoundingScope.BOTH,
                interval_minutes=15,
                direction=RoundingDirection.EMPLOYER_FAVOR,
                grace_minutes=5,
                rule_id=1,
                company_id=company_id,
            )
        ]


class DemoShifts:
    def list_assignments(self, employee_id, company_id=None):
        return [ShiftAssignment(1, employee_id, 1, NIGHT.shift_id, date(2026, 1, 1))]

    def get_shift(self, shift_id):
        return NIGHT if shift_id == NIGHT.shift_id else None


def main():
    entries = InMemoryEntryRepository()
    clock = ClockSession(entries, RoundingPolicy(DemoRules()), ShiftContext(DemoShifts()))

    print(clock.clock_in(1, 1, now=datetime(2026, 2, 2, 21, 53)).entry.to_dict())
    clock.start_break(1, 1, now=datetime(2026, 2, 3, 2, 0))
    clock.end_break(1, 1, now=datetime(2026, 2, 3, 2, 30))
    print(clock.clock_out(1, 1, now=datetime(2026, 2, 3, 6, 9)).entry.to_dict())

    report = PayrollSyncService(entries).summarize(company_id=1, start=date(2026, 2, 1), end=date(2026, 2, 7))
    for row in report.summary:
        print(row)


if __name__ == "__main__":
    main()
