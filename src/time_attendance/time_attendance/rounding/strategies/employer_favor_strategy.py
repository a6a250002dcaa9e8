from __future__ import annotations

from ...core.enums import RoundingScope
from .base import RoundingStrategy


class EmployerFavorStrategy(RoundingStrategy):
    """Shorten paid time: clock-in rounds up, clock-out rounds down."""

    def offset(self, *, remainder: int, interval: int, side: RoundingScope) -> int:
        if side == RoundingScope.CLOCK_IN:
            return self.up(remainder, interval)
        if side == RoundingScope.CLOCK_OUT:
            return self.down(remainder)
        raise ValueError("employer_favor rounding needs the punch side (clock_in or clock_out)")
