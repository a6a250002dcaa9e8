from __future__ import annotations

from datetime import date
from typing import ContextManager, Optional, Protocol, Sequence

from .model import AdjustmentRecord, TimeEntry


class EntryUnitOfWork(Protocol):
    """Reads and writes inside one serialized transaction for an employee."""

    def get_open_session(self) -> Optional[TimeEntry]:
        raise NotImplementedError

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def save(self, entry: TimeEntry) -> TimeEntry:
        """Insert (no ``entry_id``) or update an entry; returns it with its id.

        Raises SessionConflict when the write would leave two open sessions
        for the employee.
        """

        raise NotImplementedError

    def record_adjustment(self, record: AdjustmentRecord) -> None:
        raise NotImplementedError


class EntryRepository(Protocol):
    def transaction(self, employee_id: int, company_id: int) -> ContextManager[EntryUnitOfWork]:
        """Serialize all work for one ``(employee_id, company_id)``.

        Writes become visible only when the block exits without an exception.
        """

        raise NotImplementedError

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def list_closed(self, company_id: int, start: date, end: date) -> Sequence[TimeEntry]:
        """Completed/adjusted entries clocked in between ``start`` and ``end`` (inclusive)."""

        raise NotImplementedError
