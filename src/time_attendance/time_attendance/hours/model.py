from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..core.constants import DEFAULT_BREAK_IS_PAID, DEFAULT_REGULAR_CAP_HOURS
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ClockPolicy:
    """Per-company accounting configuration for closed sessions.

    The cap is coerced to ``Decimal`` and must not be negative; a bad value is
    rejected when the policy is loaded.
    """

    regular_cap_hours: Decimal = DEFAULT_REGULAR_CAP_HOURS
    break_is_paid: bool = DEFAULT_BREAK_IS_PAID

    def __post_init__(self) -> None:
        try:
            cap = Decimal(str(self.regular_cap_hours))
        except InvalidOperation:
            raise ValidationError(f"Regular cap must be a number of hours: {self.regular_cap_hours!r}")
        if not cap.is_finite() or cap < 0:
            raise ValidationError(f"Regular cap must be zero or more hours: {self.regular_cap_hours!r}")
        object.__setattr__(self, "regular_cap_hours", cap)


@dataclass(frozen=True)
class HoursBreakdown:
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    shift_differential: Optional[Decimal] = None
