from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import FrozenSet, Iterator, Optional, Tuple


@dataclass(frozen=True)
class DifferentialWindow:
    """Daily window (e.g. night hours) earning a premium per worked hour.

    A window whose end is not after its start wraps past midnight.
    ``days_of_week`` (0 = Monday) filters on the day the window opens.
    """

    start_time: time
    end_time: time
    rate: Decimal
    days_of_week: Optional[FrozenSet[int]] = None

    @property
    def wraps_midnight(self) -> bool:
        return self.end_time <= self.start_time

    def occurrences(self, first_day: date, last_day: date) -> Iterator[Tuple[datetime, datetime]]:
        """Concrete windows opening on each day from ``first_day`` to ``last_day``."""
        day = first_day
        while day <= last_day:
            if self.days_of_week is None or day.weekday() in self.days_of_week:
                start = datetime.combine(day, self.start_time)
                end = datetime.combine(day, self.end_time)
                if self.wraps_midnight:
                    end += timedelta(days=1)
                yield start, end
            day += timedelta(days=1)


@dataclass(frozen=True)
class Shift:
    """Domain entity: a work shift with its default break and optional differential.

    ``break_minutes`` is the scheduled break, used when a closed manual entry
    is recorded without an explicit break.
    """

    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    is_overnight: bool = False
    break_minutes: int = 0
    break_is_paid: Optional[bool] = None
    differential: Optional[DifferentialWindow] = None


@dataclass(frozen=True)
class ShiftAssignment:
    assignment_id: int
    employee_id: int
    company_id: int
    shift_id: int
    effective_date: date
    end_date: Optional[date] = None
    is_primary: bool = True

    def covers(self, work_date: date) -> bool:
        if self.effective_date > work_date:
            return False
        return self.end_date is None or self.end_date >= work_date
