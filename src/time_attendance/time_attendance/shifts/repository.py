from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Shift, ShiftAssignment


class ShiftAssignmentRepository(Protocol):
    def list_assignments(self, employee_id: int, company_id: Optional[int] = None) -> Sequence[ShiftAssignment]:
        raise NotImplementedError

    def get_shift(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError
