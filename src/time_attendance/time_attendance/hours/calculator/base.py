from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ...shifts.model import Shift
from ...timeclock.model import TimeEntry
from ..model import ClockPolicy, HoursBreakdown


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for session accounting)."""

    @abstractmethod
    def compute(self, entry: TimeEntry, *, shift: Optional[Shift], policy: ClockPolicy) -> HoursBreakdown:
        raise NotImplementedError
