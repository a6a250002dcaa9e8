from __future__ import annotations

from datetime import date
from typing import Optional

from .model import Shift, ShiftAssignment
from .repository import ShiftAssignmentRepository


class ShiftContext:
    """Read-only lookup of the shift an employee works on a given date."""

    def __init__(self, assignments: ShiftAssignmentRepository):
        self._assignments = assignments

    def assignment_for(self, employee_id: int, work_date: date, company_id: Optional[int] = None) -> Optional[ShiftAssignment]:
        candidates = [
            a
            for a in self._assignments.list_assignments(employee_id, company_id)
            if a.is_primary and a.covers(work_date) and (company_id is None or a.company_id == company_id)
        ]
        if not candidates:
            return None
        # Overlapping primary assignments are an upstream config error; the latest one wins.
        return max(candidates, key=lambda a: (a.effective_date, a.assignment_id))

    def resolve(self, employee_id: int, work_date: date, company_id: Optional[int] = None) -> Optional[Shift]:
        assignment = self.assignment_for(employee_id, work_date, company_id)
        if assignment is None:
            return None
        return self._assignments.get_shift(assignment.shift_id)

    def get_shift(self, shift_id: Optional[int]) -> Optional[Shift]:
        if shift_id is None:
            return None
        return self._assignments.get_shift(shift_id)
