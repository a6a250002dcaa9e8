from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest

from src.time_attendance.time_attendance.hours.model import ClockPolicy
from src.time_attendance.time_attendance.hours.policy import ClockPolicyResolver
from src.time_attendance.time_attendance.rounding.model import RoundingRule
from src.time_attendance.time_attendance.rounding.policy import RoundingPolicy
from src.time_attendance.time_attendance.shifts.context import ShiftContext
from src.time_attendance.time_attendance.shifts.model import Shift, ShiftAssignment
from src.time_attendance.time_attendance.timeclock.memory_repository import InMemoryEntryRepository
from src.time_attendance.time_attendance.timeclock.session import ClockSession


@dataclass
class InMemoryRules:
    rules: list[RoundingRule] = field(default_factory=list)

    def list_active(self, company_id: int):
        return [r for r in self.rules if r.company_id in (None, company_id) and r.is_active]


@dataclass
class InMemoryShifts:
    assignments: list[ShiftAssignment] = field(default_factory=list)
    shifts: dict[int, Shift] = field(default_factory=dict)

    def list_assignments(self, employee_id: int, company_id: Optional[int] = None):
        return [
            a
            for a in self.assignments
            if a.employee_id == employee_id and (company_id is None or a.company_id == company_id)
        ]

    def get_shift(self, shift_id: int) -> Optional[Shift]:
        return self.shifts.get(shift_id)


@dataclass
class InMemoryPolicies:
    policies: dict[int, ClockPolicy] = field(default_factory=dict)

    def get_for_company(self, company_id: int) -> Optional[ClockPolicy]:
        return self.policies.get(company_id)


@dataclass
class ClockFixture:
    clock: ClockSession
    entries: InMemoryEntryRepository
    rules: InMemoryRules
    shifts: InMemoryShifts


@pytest.fixture
def make_clock():
    def _make(
        *,
        rules=(),
        shifts=(),
        assignments=(),
        policies: Optional[dict[int, ClockPolicy]] = None,
        entries=None,
    ) -> ClockFixture:
        rules_repo = InMemoryRules(list(rules))
        shifts_repo = InMemoryShifts(list(assignments), {s.shift_id: s for s in shifts})
        policies_repo = InMemoryPolicies(dict(policies or {}))
        entries = entries or InMemoryEntryRepository()
        clock = ClockSession(
            entries,
            RoundingPolicy(rules_repo),
            ShiftContext(shifts_repo),
            ClockPolicyResolver(policies_repo),
        )
        return ClockFixture(clock=clock, entries=entries, rules=rules_repo, shifts=shifts_repo)

    return _make
