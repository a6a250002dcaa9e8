from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest

from src.time_attendance.time_attendance.core.enums import RoundingDirection, RoundingScope
from src.time_attendance.time_attendance.rounding.model import RoundingRule
from src.time_attendance.time_attendance.rounding.policy import RoundingPolicy, round_time, select_rule

IN = RoundingScope.CLOCK_IN
OUT = RoundingScope.CLOCK_OUT


def rule(direction: RoundingDirection, *, interval: int = 15, grace: int = 3, scope=RoundingScope.BOTH, **extra):
    return RoundingRule(scope=scope, interval_minutes=interval, direction=direction, grace_minutes=grace, **extra)


def t(hh: int, mm: int, ss: int = 0) -> datetime:
    return datetime(2026, 2, 2, hh, mm, ss)


def test_nearest_inside_interval_rounds_to_closer_boundary():
    # remainder 7 of 15 is below the half point
    assert round_time(t(9, 7), rule(RoundingDirection.NEAREST), side=IN) == t(9, 0)


def test_grace_window_before_boundary_rounds_up():
    assert round_time(t(9, 13), rule(RoundingDirection.NEAREST), side=IN) == t(9, 15)


def test_employer_favor_example():
    r = rule(RoundingDirection.EMPLOYER_FAVOR)
    assert round_time(t(8, 58), r, side=IN) == t(9, 0)
    assert round_time(t(17, 4), r, side=OUT) == t(17, 0)


def test_employer_favor_shortens_paid_time_outside_grace():
    r = rule(RoundingDirection.EMPLOYER_FAVOR)
    assert round_time(t(9, 7), r, side=IN) == t(9, 15)
    assert round_time(t(17, 10), r, side=OUT) == t(17, 0)


def test_employer_favor_needs_a_side():
    with pytest.raises(ValueError):
        round_time(t(9, 7), rule(RoundingDirection.EMPLOYER_FAVOR), side=RoundingScope.BOTH)


@pytest.mark.parametrize("direction", list(RoundingDirection))
def test_grace_boundaries_are_inclusive_and_beat_direction(direction):
    r = rule(direction, interval=15, grace=3)
    # remainder == grace rounds down even for "up"
    assert round_time(t(9, 3), r, side=IN) == t(9, 0)
    # remainder == interval - grace rounds up even for "down"
    assert round_time(t(9, 12), r, side=OUT) == t(9, 15)


def test_up_and_down_outside_grace():
    assert round_time(t(9, 4), rule(RoundingDirection.UP), side=IN) == t(9, 15)
    assert round_time(t(9, 11), rule(RoundingDirection.DOWN), side=IN) == t(9, 0)


def test_nearest_tie_rounds_up():
    r = rule(RoundingDirection.NEAREST, interval=10, grace=2)
    assert round_time(t(9, 5), r, side=IN) == t(9, 10)
    assert round_time(t(9, 4), r, side=IN) == t(9, 0)


def test_seconds_are_discarded_before_rounding():
    r = rule(RoundingDirection.NEAREST)
    assert round_time(t(9, 7, 59), r, side=IN) == t(9, 0)
    assert round_time(t(9, 0, 45), r, side=IN) == t(9, 0)


def test_missing_rule_is_identity():
    raw = t(9, 7, 31)
    assert round_time(raw, None, side=IN) is raw


def test_rounding_up_at_end_of_day_rolls_to_next_midnight():
    assert round_time(t(23, 58), rule(RoundingDirection.UP), side=OUT) == datetime(2026, 2, 3, 0, 0)
    assert round_time(t(23, 50), rule(RoundingDirection.UP, grace=0), side=OUT) == datetime(2026, 2, 3, 0, 0)


@pytest.mark.parametrize("direction", list(RoundingDirection))
@pytest.mark.parametrize("interval,grace", [(15, 3), (6, 0), (30, 7), (60, 10), (1, 0)])
def test_rounding_is_idempotent_for_every_minute_of_day(direction, interval, grace):
    r = rule(direction, interval=interval, grace=grace)
    start = t(0, 0, 17)
    for minute in range(24 * 60):
        raw = start + timedelta(minutes=minute)
        for side in (IN, OUT):
            once = round_time(raw, r, side=side)
            assert round_time(once, r, side=side) == once


def test_select_rule_prefers_shift_specific_then_exact_scope():
    company_both = rule(RoundingDirection.NEAREST, rule_id=1, company_id=1)
    company_in = rule(RoundingDirection.UP, scope=IN, rule_id=2, company_id=1)
    shift_both = rule(RoundingDirection.DOWN, rule_id=3, company_id=1, shift_id=5)
    rules = [company_both, company_in, shift_both]

    assert select_rule(rules, side=IN, shift_id=5) is shift_both
    assert select_rule(rules, side=IN, shift_id=None) is company_in
    assert select_rule(rules, side=OUT, shift_id=None) is company_both
    assert select_rule(rules, side=OUT, shift_id=9) is company_both


def test_select_rule_skips_inactive_and_non_matching_scope():
    rules = [
        rule(RoundingDirection.UP, scope=OUT, rule_id=1),
        rule(RoundingDirection.UP, scope=IN, rule_id=2, is_active=False),
    ]
    assert select_rule(rules, side=IN) is None


@dataclass
class FixedRules:
    rules: list

    def list_active(self, company_id: int):
        return [r for r in self.rules if r.company_id == company_id]


def test_policy_applies_company_rule_and_is_opt_in():
    policy = RoundingPolicy(FixedRules([rule(RoundingDirection.NEAREST, company_id=1, rule_id=1)]))

    assert policy.apply(t(9, 13), company_id=1, side=IN) == t(9, 15)
    # company 2 has no rule: raw time comes back unchanged
    assert policy.apply(t(9, 13, 5), company_id=2, side=IN) == t(9, 13, 5)
