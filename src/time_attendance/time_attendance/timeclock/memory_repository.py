from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..core.exceptions import SessionConflict
from .model import AdjustmentRecord, TimeEntry
from .repository import EntryRepository

Key = Tuple[int, int]


class _InMemoryUnitOfWork:
    def __init__(self, repo: "InMemoryEntryRepository", key: Key):
        self._repo = repo
        self._key = key
        self.staged: Dict[int, TimeEntry] = {}
        self.adjustments: List[AdjustmentRecord] = []

    def get_open_session(self) -> Optional[TimeEntry]:
        employee_id, company_id = self._key
        for entry in self._view():
            if entry.employee_id == employee_id and entry.company_id == company_id and entry.is_open:
                return entry
        return None

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        if entry_id in self.staged:
            return self.staged[entry_id]
        return self._repo.get_by_id(entry_id)

    def save(self, entry: TimeEntry) -> TimeEntry:
        if entry.entry_id is None:
            entry = replace(entry, entry_id=self._repo._next_id())
        if entry.is_open:
            for other in self._view():
                if (
                    other.entry_id != entry.entry_id
                    and (other.employee_id, other.company_id) == (entry.employee_id, entry.company_id)
                    and other.is_open
                ):
                    raise SessionConflict(
                        f"Employee {entry.employee_id} already has open entry {other.entry_id}"
                    )
        self.staged[entry.entry_id] = entry
        return entry

    def record_adjustment(self, record: AdjustmentRecord) -> None:
        self.adjustments.append(record)

    def _view(self) -> List[TimeEntry]:
        merged = dict(self._repo._snapshot())
        merged.update(self.staged)
        return list(merged.values())


class InMemoryEntryRepository(EntryRepository):
    """Process-local entry store.

    One lock per ``(employee_id, company_id)`` is held for the whole
    transaction; staged writes are published only when the block exits cleanly.
    Locks are created on first use and kept for the life of the store.
    """

    def __init__(self):
        self._entries: Dict[int, TimeEntry] = {}
        self._adjustments: List[AdjustmentRecord] = []
        self._id = 0
        self._guard = threading.Lock()
        self._locks: Dict[Key, threading.Lock] = {}

    @contextmanager
    def transaction(self, employee_id: int, company_id: int) -> Iterator[_InMemoryUnitOfWork]:
        key = (int(employee_id), int(company_id))
        with self._lock_for(key):
            uow = _InMemoryUnitOfWork(self, key)
            yield uow
            with self._guard:
                self._entries.update(uow.staged)
                self._adjustments.extend(uow.adjustments)

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        with self._guard:
            return self._entries.get(int(entry_id))

    def list_closed(self, company_id: int, start: date, end: date) -> Sequence[TimeEntry]:
        items = [
            e
            for e in self._snapshot().values()
            if e.company_id == company_id and e.status.is_closed and start <= e.clock_in.date() <= end
        ]
        items.sort(key=lambda e: (e.employee_id, e.clock_in))
        return items

    def list_for_employee(self, employee_id: int, company_id: int) -> Sequence[TimeEntry]:
        items = [
            e for e in self._snapshot().values() if e.employee_id == employee_id and e.company_id == company_id
        ]
        items.sort(key=lambda e: e.clock_in)
        return items

    def adjustments_for(self, entry_id: int) -> Sequence[AdjustmentRecord]:
        with self._guard:
            return [a for a in self._adjustments if a.entry_id == entry_id]

    def _lock_for(self, key: Key) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def _snapshot(self) -> Dict[int, TimeEntry]:
        with self._guard:
            return dict(self._entries)

    def _next_id(self) -> int:
        with self._guard:
            self._id += 1
            return self._id
