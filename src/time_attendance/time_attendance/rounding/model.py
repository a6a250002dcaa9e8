from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import MINUTES_PER_DAY
from ..core.enums import RoundingDirection, RoundingScope
from ..core.exceptions import InvalidRuleConfiguration


@dataclass(frozen=True)
class RoundingRule:
    """Company (optionally shift) configuration mapping raw punches to payroll times.

    Construction validates the rule, so a malformed row is rejected while rules
    are loaded and never reaches the rounding code.
    """

    scope: RoundingScope
    interval_minutes: int
    direction: RoundingDirection
    grace_minutes: int = 0
    rule_id: Optional[int] = None
    company_id: Optional[int] = None
    shift_id: Optional[int] = None
    name: str = ""
    is_active: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.scope, RoundingScope):
            raise InvalidRuleConfiguration(f"Unknown rounding scope: {self.scope!r}")
        if not isinstance(self.direction, RoundingDirection):
            raise InvalidRuleConfiguration(f"Unknown rounding direction: {self.direction!r}")
        if self.interval_minutes <= 0:
            raise InvalidRuleConfiguration(
                f"Rounding interval must be positive (rule {self.rule_id}: {self.interval_minutes})"
            )
        if MINUTES_PER_DAY % self.interval_minutes != 0:
            raise InvalidRuleConfiguration(
                f"Rounding interval must divide a 24h day (rule {self.rule_id}: {self.interval_minutes})"
            )
        if self.grace_minutes < 0 or self.grace_minutes >= self.interval_minutes:
            raise InvalidRuleConfiguration(
                f"Grace must be in [0, interval) (rule {self.rule_id}: "
                f"grace={self.grace_minutes}, interval={self.interval_minutes})"
            )

    @classmethod
    def from_config(
        cls,
        *,
        scope: str,
        interval_minutes: int,
        direction: str,
        grace_minutes: int = 0,
        **extra,
    ) -> "RoundingRule":
        """Build a rule from raw stored values, mapping bad enum strings to a config error."""
        try:
            scope_value = RoundingScope(scope)
            direction_value = RoundingDirection(direction)
        except ValueError as exc:
            raise InvalidRuleConfiguration(str(exc)) from exc
        return cls(
            scope=scope_value,
            interval_minutes=int(interval_minutes),
            direction=direction_value,
            grace_minutes=int(grace_minutes or 0),
            **extra,
        )

    def applies_to(self, side: RoundingScope) -> bool:
        return self.scope == RoundingScope.BOTH or self.scope == side
