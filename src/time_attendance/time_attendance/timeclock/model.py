from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import EntryMethod, EntryStatus, FailureCode
from ..hours.model import HoursBreakdown


@dataclass(frozen=True)
class TimeEntry:
    """Domain entity: one clock session of an employee, open or closed.

    Raw punches are kept as received; ``rounded_*`` are derived from them by the
    rounding rule in force when they were written.
    """

    employee_id: int
    company_id: int
    clock_in: datetime
    rounded_clock_in: datetime
    status: EntryStatus
    entry_id: Optional[int] = None
    shift_id: Optional[int] = None
    clock_out: Optional[datetime] = None
    rounded_clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    break_duration_minutes: int = 0
    total_hours: Optional[Decimal] = None
    regular_hours: Optional[Decimal] = None
    overtime_hours: Optional[Decimal] = None
    shift_differential: Optional[Decimal] = None
    clock_in_method: EntryMethod = EntryMethod.WEB
    clock_out_method: Optional[EntryMethod] = None
    notes: Optional[str] = None
    adjusted_by: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    @property
    def effective_clock_in(self) -> datetime:
        return self.rounded_clock_in or self.clock_in

    @property
    def effective_clock_out(self) -> Optional[datetime]:
        if self.clock_out is None:
            return None
        return self.rounded_clock_out or self.clock_out

    def with_hours(self, hours: HoursBreakdown) -> "TimeEntry":
        return replace(
            self,
            total_hours=hours.total_hours,
            regular_hours=hours.regular_hours,
            overtime_hours=hours.overtime_hours,
            shift_differential=hours.shift_differential,
        )

    def to_dict(self) -> dict:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        def _num(value: Optional[Decimal]) -> Optional[str]:
            return str(value) if value is not None else None

        return {
            "entry_id": self.entry_id,
            "employee_id": self.employee_id,
            "company_id": self.company_id,
            "shift_id": self.shift_id,
            "status": self.status.value,
            "clock_in": _ts(self.clock_in),
            "clock_out": _ts(self.clock_out),
            "rounded_clock_in": _ts(self.rounded_clock_in),
            "rounded_clock_out": _ts(self.rounded_clock_out),
            "break_start": _ts(self.break_start),
            "break_end": _ts(self.break_end),
            "break_duration_minutes": self.break_duration_minutes,
            "total_hours": _num(self.total_hours),
            "regular_hours": _num(self.regular_hours),
            "overtime_hours": _num(self.overtime_hours),
            "shift_differential": _num(self.shift_differential),
            "clock_in_method": self.clock_in_method.value,
            "clock_out_method": self.clock_out_method.value if self.clock_out_method else None,
            "notes": self.notes,
            "adjusted_by": self.adjusted_by,
        }


@dataclass(frozen=True)
class ClockFailure:
    code: FailureCode
    message: str


@dataclass(frozen=True)
class PunchResult:
    """Outcome of one engine operation: the stored entry, or why nothing was written."""

    entry: Optional[TimeEntry] = None
    failure: Optional[ClockFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, entry: TimeEntry) -> "PunchResult":
        return cls(entry=entry)

    @classmethod
    def failed(cls, code: FailureCode, message: str) -> "PunchResult":
        return cls(failure=ClockFailure(code=code, message=message))


@dataclass(frozen=True)
class AdjustmentRecord:
    """Audit trail of a privileged correction to a closed entry."""

    entry_id: int
    actor_id: int
    before: TimeEntry
    after: TimeEntry
    adjusted_at: datetime
    reason: Optional[str] = None
