from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..common.datetime_utils import minutes_of_day, truncate_to_minute
from ..core.enums import RoundingScope
from .factory import RoundingStrategyFactory
from .model import RoundingRule
from .repository import RoundingRuleRepository

_FACTORY = RoundingStrategyFactory()


def round_time(
    raw: datetime,
    rule: Optional[RoundingRule],
    *,
    side: RoundingScope,
    factory: RoundingStrategyFactory = _FACTORY,
) -> datetime:
    """Round a raw punch to the rule's interval boundary.

    Without a rule the punch is returned unchanged. Otherwise seconds are
    dropped, punches within ``grace_minutes`` of a boundary snap to it, and the
    rule's direction decides everything in between. Boundaries are measured
    from midnight; rounding up from the last interval of the day lands on the
    next day's midnight.
    """

    if rule is None:
        return raw

    base = truncate_to_minute(raw)
    interval = rule.interval_minutes
    remainder = minutes_of_day(base) % interval

    if remainder <= rule.grace_minutes:
        offset = -remainder
    elif remainder >= interval - rule.grace_minutes:
        offset = interval - remainder
    else:
        strategy = factory.for_direction(rule.direction)
        offset = strategy.offset(remainder=remainder, interval=interval, side=side)

    return base + timedelta(minutes=offset)


def select_rule(
    rules: Iterable[RoundingRule],
    *,
    side: RoundingScope,
    shift_id: Optional[int] = None,
) -> Optional[RoundingRule]:
    """Pick the rule in force for one side of a punch.

    Shift-bound rules beat company-wide ones; at equal specificity an exact
    scope beats ``both``; remaining ties go to the lowest rule id.
    """

    candidates = []
    for rule in rules:
        if not rule.is_active or not rule.applies_to(side):
            continue
        if rule.shift_id is not None and rule.shift_id != shift_id:
            continue
        rank = (
            0 if rule.shift_id is not None else 1,
            0 if rule.scope == side else 1,
            rule.rule_id if rule.rule_id is not None else 0,
        )
        candidates.append((rank, rule))

    if not candidates:
        return None
    candidates.sort(key=lambda c: c[0])
    return candidates[0][1]


class RoundingPolicy:
    """Resolves the company's rule for a punch side and applies it."""

    def __init__(self, rules: RoundingRuleRepository, *, factory: Optional[RoundingStrategyFactory] = None):
        self._rules = rules
        self._factory = factory or _FACTORY

    def rule_for(self, *, company_id: int, side: RoundingScope, shift_id: Optional[int] = None) -> Optional[RoundingRule]:
        return select_rule(self._rules.list_active(company_id), side=side, shift_id=shift_id)

    def apply(
        self,
        raw: datetime,
        *,
        company_id: int,
        side: RoundingScope,
        shift_id: Optional[int] = None,
    ) -> datetime:
        rule = self.rule_for(company_id=company_id, side=side, shift_id=shift_id)
        return round_time(raw, rule, side=side, factory=self._factory)
