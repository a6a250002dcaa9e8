from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ...common.datetime_utils import elapsed_minutes, overlap
from ...core.constants import HOURS_QUANTUM
from ...core.exceptions import ValidationError
from ...shifts.model import Shift
from ...timeclock.model import TimeEntry
from ..model import ClockPolicy, HoursBreakdown
from .base import HoursCalculator

_SIXTY = Decimal(60)


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: (rounded out - rounded in) - unpaid break, split at the regular cap.

    Rounding to hundredths happens once, on the total; regular and overtime are
    carved out of the rounded total so they always add up to it exactly.
    """

    def compute(self, entry: TimeEntry, *, shift: Optional[Shift], policy: ClockPolicy) -> HoursBreakdown:
        self._validate(entry)

        gross_minutes = elapsed_minutes(entry.effective_clock_in, entry.effective_clock_out)
        paid_minutes = gross_minutes
        if not self._break_is_paid(shift, policy):
            paid_minutes -= Decimal(entry.break_duration_minutes)
        paid_minutes = max(paid_minutes, Decimal(0))

        cap = _quantize(Decimal(policy.regular_cap_hours))
        total = _quantize(paid_minutes / _SIXTY)
        regular = min(total, cap)
        overtime = total - regular

        return HoursBreakdown(
            total_hours=total,
            regular_hours=regular,
            overtime_hours=overtime,
            shift_differential=self.shift_differential(entry, shift),
        )

    def shift_differential(self, entry: TimeEntry, shift: Optional[Shift]) -> Optional[Decimal]:
        if shift is None or shift.differential is None:
            return None

        window = shift.differential
        start, end = entry.effective_clock_in, entry.effective_clock_out
        worked = timedelta(0)
        # Windows opening the day before can still cover the start of the session.
        for w_start, w_end in window.occurrences(start.date() - timedelta(days=1), end.date()):
            worked += overlap(start, end, w_start, w_end)

        if worked <= timedelta(0):
            return None
        hours = Decimal(str(worked.total_seconds())) / Decimal(3600)
        return _quantize(hours * Decimal(window.rate))

    @staticmethod
    def _break_is_paid(shift: Optional[Shift], policy: ClockPolicy) -> bool:
        if shift is not None and shift.break_is_paid is not None:
            return shift.break_is_paid
        return policy.break_is_paid

    @staticmethod
    def _validate(entry: TimeEntry) -> None:
        if entry.clock_out is None:
            raise ValidationError("Cannot compute hours for an open session")
        if entry.clock_out <= entry.clock_in:
            raise ValidationError("Clock-out must be after clock-in")
        if entry.break_duration_minutes < 0:
            raise ValidationError("Break duration cannot be negative")
