from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

from src.time_attendance.time_attendance.core.enums import (
    EntryMethod,
    EntryStatus,
    FailureCode,
    RoundingDirection,
    RoundingScope,
)
from src.time_attendance.time_attendance.rounding.model import RoundingRule
from src.time_attendance.time_attendance.shifts.model import Shift, ShiftAssignment

EMP, CO, ADMIN = 7, 1, 99


def at(hour: int, minute: int = 0, *, day: int = 2) -> datetime:
    return datetime(2026, 2, day, hour, minute)


def nearest_quarter() -> RoundingRule:
    return RoundingRule(
        scope=RoundingScope.BOTH, interval_minutes=15, direction=RoundingDirection.NEAREST, rule_id=1, company_id=CO
    )


def test_manual_entry_requires_notes(make_clock):
    fx = make_clock()

    for notes in (None, "", "   "):
        result = fx.clock.manual_entry(EMP, CO, clock_in=at(8), clock_out=at(16), notes=notes)
        assert result.failure.code == FailureCode.MISSING_NOTES_FOR_MANUAL_ENTRY

    assert fx.entries.list_for_employee(EMP, CO) == []


def test_manual_entry_closed_session_is_rounded_and_computed(make_clock):
    fx = make_clock(rules=[nearest_quarter()])

    result = fx.clock.manual_entry(
        EMP, CO, clock_in=at(7, 58), clock_out=at(17, 32), break_minutes=30, notes="forgot badge"
    )

    entry = result.entry
    assert result.ok
    assert entry.status == EntryStatus.COMPLETED
    assert entry.clock_in_method == EntryMethod.MANUAL
    assert entry.clock_out_method == EntryMethod.MANUAL
    assert entry.notes == "forgot badge"
    assert entry.rounded_clock_in == at(8, 0)
    assert entry.rounded_clock_out == at(17, 30)
    assert entry.total_hours == Decimal("9.00")
    assert entry.overtime_hours == Decimal("1.00")


def test_manual_entry_does_not_need_an_open_session(make_clock):
    fx = make_clock()
    fx.clock.clock_in(EMP, CO, now=at(13, 0))

    past = fx.clock.manual_entry(EMP, CO, clock_in=at(8, 0, day=1), clock_out=at(12, 0, day=1), notes="yesterday")

    assert past.ok
    assert len(fx.entries.list_for_employee(EMP, CO)) == 2


def test_open_manual_entry_respects_single_open_session(make_clock):
    fx = make_clock()
    fx.clock.clock_in(EMP, CO, now=at(8, 0))

    result = fx.clock.manual_entry(EMP, CO, clock_in=at(9, 0), notes="left open")

    assert result.failure.code == FailureCode.SESSION_ALREADY_OPEN


def test_open_manual_entry_can_be_clocked_out(make_clock):
    fx = make_clock()

    opened = fx.clock.manual_entry(EMP, CO, clock_in=at(8, 0), notes="kiosk down")
    assert opened.entry.status == EntryStatus.ACTIVE

    done = fx.clock.clock_out(EMP, CO, now=at(12, 0))
    assert done.entry.entry_id == opened.entry.entry_id
    assert done.entry.total_hours == Decimal("4.00")


def test_manual_entry_rejects_bad_ordering_and_break(make_clock):
    fx = make_clock()

    reversed_times = fx.clock.manual_entry(EMP, CO, clock_in=at(12), clock_out=at(8), notes="x")
    assert reversed_times.failure.code == FailureCode.INVALID_TIME_ORDERING

    long_break = fx.clock.manual_entry(EMP, CO, clock_in=at(8), clock_out=at(9), break_minutes=60, notes="x")
    assert long_break.failure.code == FailureCode.INVALID_TIME_ORDERING


def _completed(fx, clock_in=at(8, 0), clock_out=at(17, 30), break_minutes=30):
    return fx.clock.manual_entry(
        EMP, CO, clock_in=clock_in, clock_out=clock_out, break_minutes=break_minutes, notes="seed"
    ).entry


def test_adjust_rewrites_and_audits(make_clock):
    fx = make_clock()
    original = _completed(fx)

    result = fx.clock.adjust(
        original.entry_id, actor_id=ADMIN, new_clock_out=at(16, 30), reason="left early", now=at(18, 0)
    )

    adjusted = result.entry
    assert result.ok
    assert adjusted.status == EntryStatus.ADJUSTED
    assert adjusted.adjusted_by == ADMIN
    assert adjusted.clock_out == at(16, 30)
    assert adjusted.total_hours == Decimal("8.00")
    assert adjusted.overtime_hours == Decimal("0.00")
    assert fx.entries.get_by_id(original.entry_id) == adjusted

    [record] = fx.entries.adjustments_for(original.entry_id)
    assert record.actor_id == ADMIN
    assert record.before == original
    assert record.after == adjusted
    assert record.reason == "left early"
    assert record.adjusted_at == at(18, 0)


def test_adjust_rerounds_with_current_rules(make_clock):
    fx = make_clock()
    original = _completed(fx, clock_in=at(8, 7), clock_out=at(16, 7), break_minutes=0)
    assert original.rounded_clock_in == at(8, 7)

    fx.rules.rules.append(nearest_quarter())
    adjusted = fx.clock.adjust(original.entry_id, actor_id=ADMIN, break_minutes=0).entry

    assert adjusted.rounded_clock_in == at(8, 0)
    assert adjusted.rounded_clock_out == at(16, 0)
    assert adjusted.clock_in == at(8, 7)


def test_adjust_rejects_unknown_open_and_already_adjusted(make_clock):
    fx = make_clock()

    assert fx.clock.adjust(404, actor_id=ADMIN).failure.code == FailureCode.ENTRY_NOT_FOUND

    open_entry = fx.clock.clock_in(EMP, CO, now=at(8, 0)).entry
    assert fx.clock.adjust(open_entry.entry_id, actor_id=ADMIN).failure.code == FailureCode.ENTRY_NOT_ADJUSTABLE
    fx.clock.clock_out(EMP, CO, now=at(12, 0))

    assert fx.clock.adjust(open_entry.entry_id, actor_id=ADMIN).ok
    again = fx.clock.adjust(open_entry.entry_id, actor_id=ADMIN)
    assert again.failure.code == FailureCode.ENTRY_NOT_ADJUSTABLE
    assert len(fx.entries.adjustments_for(open_entry.entry_id)) == 1


def test_adjust_validates_new_times(make_clock):
    fx = make_clock()
    original = _completed(fx)

    reversed_times = fx.clock.adjust(original.entry_id, actor_id=ADMIN, new_clock_out=at(7, 0))
    assert reversed_times.failure.code == FailureCode.INVALID_TIME_ORDERING

    huge_break = fx.clock.adjust(original.entry_id, actor_id=ADMIN, break_minutes=600)
    assert huge_break.failure.code == FailureCode.INVALID_TIME_ORDERING

    assert fx.entries.get_by_id(original.entry_id) == original
    assert fx.entries.adjustments_for(original.entry_id) == []


def test_adjust_rejects_window_that_excludes_recorded_break(make_clock):
    fx = make_clock()
    fx.clock.clock_in(EMP, CO, now=at(8, 0))
    fx.clock.start_break(EMP, CO, now=at(12, 0))
    fx.clock.end_break(EMP, CO, now=at(12, 30))
    done = fx.clock.clock_out(EMP, CO, now=at(17, 0)).entry

    result = fx.clock.adjust(done.entry_id, actor_id=ADMIN, new_clock_out=at(12, 15), break_minutes=0)

    assert result.failure.code == FailureCode.INVALID_TIME_ORDERING


def _day_shift_fixture(make_clock, break_minutes=30):
    day = Shift(shift_id=3, shift_name="Day", start_time=time(8, 0), end_time=time(17, 0), break_minutes=break_minutes)
    return make_clock(
        shifts=[day],
        assignments=[
            ShiftAssignment(assignment_id=1, employee_id=EMP, company_id=CO, shift_id=3, effective_date=date(2026, 1, 1))
        ],
    )


def test_manual_entry_without_break_uses_scheduled_break(make_clock):
    fx = _day_shift_fixture(make_clock)

    entry = fx.clock.manual_entry(EMP, CO, clock_in=at(8), clock_out=at(17), notes="reader offline").entry

    assert entry.shift_id == 3
    assert entry.break_duration_minutes == 30
    assert entry.total_hours == Decimal("8.50")


def test_explicit_break_overrides_scheduled_break(make_clock):
    fx = _day_shift_fixture(make_clock)

    entry = fx.clock.manual_entry(
        EMP, CO, clock_in=at(8), clock_out=at(17), break_minutes=0, notes="worked through lunch"
    ).entry

    assert entry.break_duration_minutes == 0
    assert entry.total_hours == Decimal("9.00")


def test_scheduled_break_longer_than_session_is_rejected(make_clock):
    fx = _day_shift_fixture(make_clock, break_minutes=60)

    result = fx.clock.manual_entry(EMP, CO, clock_in=at(8), clock_out=at(8, 45), notes="short visit")

    assert result.failure.code == FailureCode.INVALID_TIME_ORDERING
    assert fx.entries.list_for_employee(EMP, CO) == []


def test_open_manual_entry_starts_without_break(make_clock):
    fx = _day_shift_fixture(make_clock)

    entry = fx.clock.manual_entry(EMP, CO, clock_in=at(8), notes="forgot to punch").entry

    assert entry.status == EntryStatus.ACTIVE
    assert entry.break_duration_minutes == 0
