from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local, whole_minutes
from ..common.validators import clean_text
from ..core.enums import EntryMethod, EntryStatus, FailureCode, RoundingScope
from ..core.exceptions import InvalidRuleConfiguration, SessionConflict
from ..hours.calculator.base import HoursCalculator
from ..hours.calculator.standard_calculator import StandardHoursCalculator
from ..hours.policy import ClockPolicyResolver
from ..rounding.policy import RoundingPolicy
from ..shifts.context import ShiftContext
from .model import AdjustmentRecord, PunchResult, TimeEntry
from .repository import EntryRepository, EntryUnitOfWork

logger = logging.getLogger(__name__)


class ClockSession:
    """Per-employee punch state machine.

    NoSession -> ACTIVE -> (ON_BREAK <-> ACTIVE)* -> COMPLETED -> ADJUSTED

    The engine keeps no state between calls: every operation re-reads the open
    session inside one repository transaction and writes at most once. Guard
    violations come back as failed ``PunchResult`` values and leave the store
    untouched.
    """

    def __init__(
        self,
        entries: EntryRepository,
        rounding: RoundingPolicy,
        shifts: ShiftContext,
        policies: Optional[ClockPolicyResolver] = None,
        *,
        calculator: Optional[HoursCalculator] = None,
    ):
        self._entries = entries
        self._rounding = rounding
        self._shifts = shifts
        self._policies = policies or ClockPolicyResolver()
        self._calculator = calculator or StandardHoursCalculator()

    # -- live punches -----------------------------------------------------

    def clock_in(
        self,
        employee_id: int,
        company_id: int,
        *,
        now: Optional[datetime] = None,
        method: EntryMethod = EntryMethod.WEB,
    ) -> PunchResult:
        now = now or now_local()

        def op(uow: EntryUnitOfWork) -> PunchResult:
            current = uow.get_open_session()
            if current is not None:
                return PunchResult.failed(
                    FailureCode.SESSION_ALREADY_OPEN,
                    f"Employee already has an open session (entry {current.entry_id})",
                )

            shift = self._shifts.resolve(employee_id, now.date(), company_id)
            shift_id = shift.shift_id if shift else None
            entry = TimeEntry(
                employee_id=employee_id,
                company_id=company_id,
                shift_id=shift_id,
                clock_in=now,
                rounded_clock_in=self._round(now, company_id, RoundingScope.CLOCK_IN, shift_id),
                status=EntryStatus.ACTIVE,
                clock_in_method=method,
            )
            return PunchResult.success(uow.save(entry))

        return self._run("clock_in", employee_id, company_id, op)

    def start_break(self, employee_id: int, company_id: int, *, now: Optional[datetime] = None) -> PunchResult:
        now = now or now_local()

        def op(uow: EntryUnitOfWork) -> PunchResult:
            current = uow.get_open_session()
            if current is None:
                return PunchResult.failed(FailureCode.NO_ACTIVE_SESSION, "No open session to take a break from")
            if current.status == EntryStatus.ON_BREAK:
                return PunchResult.failed(FailureCode.BREAK_ALREADY_IN_PROGRESS, "A break is already in progress")
            if now < current.clock_in or (current.break_end is not None and now < current.break_end):
                return PunchResult.failed(
                    FailureCode.INVALID_TIME_ORDERING, "Break cannot start before clock-in or the previous break end"
                )

            updated = replace(current, break_start=now, break_end=None, status=EntryStatus.ON_BREAK)
            return PunchResult.success(uow.save(updated))

        return self._run("start_break", employee_id, company_id, op)

    def end_break(self, employee_id: int, company_id: int, *, now: Optional[datetime] = None) -> PunchResult:
        now = now or now_local()

        def op(uow: EntryUnitOfWork) -> PunchResult:
            current = uow.get_open_session()
            if current is None:
                return PunchResult.failed(FailureCode.NO_ACTIVE_SESSION, "No open session")
            if current.status != EntryStatus.ON_BREAK:
                return PunchResult.failed(FailureCode.NO_BREAK_IN_PROGRESS, "No break in progress")
            if now <= current.break_start:
                return PunchResult.failed(FailureCode.INVALID_TIME_ORDERING, "Break must end after it started")

            return PunchResult.success(uow.save(self._close_break(current, now)))

        return self._run("end_break", employee_id, company_id, op)

    def clock_out(
        self,
        employee_id: int,
        company_id: int,
        *,
        now: Optional[datetime] = None,
        method: EntryMethod = EntryMethod.WEB,
    ) -> PunchResult:
        """Close the open session; a break still running is closed at ``now`` first."""

        now = now or now_local()

        def op(uow: EntryUnitOfWork) -> PunchResult:
            current = uow.get_open_session()
            if current is None:
                return PunchResult.failed(FailureCode.NO_ACTIVE_SESSION, "No open session to clock out of")
            if now <= current.clock_in:
                return PunchResult.failed(FailureCode.INVALID_TIME_ORDERING, "Clock-out must be after clock-in")

            entry = current
            if entry.status == EntryStatus.ON_BREAK:
                if now <= entry.break_start:
                    return PunchResult.failed(
                        FailureCode.INVALID_TIME_ORDERING, "Clock-out must be after the open break started"
                    )
                entry = self._close_break(entry, now)

            entry = replace(
                entry,
                clock_out=now,
                rounded_clock_out=self._round(now, entry.company_id, RoundingScope.CLOCK_OUT, entry.shift_id),
                clock_out_method=method,
                status=EntryStatus.COMPLETED,
            )
            return PunchResult.success(uow.save(self._with_hours(entry)))

        return self._run("clock_out", employee_id, company_id, op)

    # -- back office ------------------------------------------------------

    def manual_entry(
        self,
        employee_id: int,
        company_id: int,
        *,
        clock_in: datetime,
        notes: Optional[str],
        clock_out: Optional[datetime] = None,
        shift_id: Optional[int] = None,
        break_minutes: Optional[int] = None,
    ) -> PunchResult:
        """Record a session on someone's behalf.

        Skips the live "currently open" requirement but still rounds and
        computes hours. Without ``clock_out`` the entry stays ACTIVE and is
        closed later by a normal clock-out, so it must not collide with an
        already open session. A closed entry without ``break_minutes`` takes
        the shift's scheduled break.
        """

        note = clean_text(notes)
        if note is None:
            return self._reject(
                "manual_entry",
                employee_id,
                PunchResult.failed(FailureCode.MISSING_NOTES_FOR_MANUAL_ENTRY, "Manual entries need a note"),
            )
        if clock_out is not None and clock_out <= clock_in:
            return self._reject(
                "manual_entry",
                employee_id,
                PunchResult.failed(FailureCode.INVALID_TIME_ORDERING, "Clock-out must be after clock-in"),
            )
        if break_minutes is not None and (
            break_minutes < 0
            or (clock_out is not None and break_minutes * 60 >= (clock_out - clock_in).total_seconds())
        ):
            return self._reject(
                "manual_entry",
                employee_id,
                PunchResult.failed(FailureCode.INVALID_TIME_ORDERING, "Break does not fit inside the session"),
            )

        def op(uow: EntryUnitOfWork) -> PunchResult:
            if clock_out is None:
                current = uow.get_open_session()
                if current is not None:
                    return PunchResult.failed(
                        FailureCode.SESSION_ALREADY_OPEN,
                        f"Employee already has an open session (entry {current.entry_id})",
                    )

            if shift_id is None:
                shift = self._shifts.resolve(employee_id, clock_in.date(), company_id)
            else:
                shift = self._shifts.get_shift(shift_id)
            resolved_shift_id = shift.shift_id if shift else shift_id

            brk = break_minutes
            if brk is None:
                brk = shift.break_minutes if shift and clock_out is not None else 0
                if clock_out is not None and brk * 60 >= (clock_out - clock_in).total_seconds():
                    return PunchResult.failed(
                        FailureCode.INVALID_TIME_ORDERING, "Scheduled break does not fit inside the session"
                    )

            entry = TimeEntry(
                employee_id=employee_id,
                company_id=company_id,
                shift_id=resolved_shift_id,
                clock_in=clock_in,
                rounded_clock_in=self._round(clock_in, company_id, RoundingScope.CLOCK_IN, resolved_shift_id),
                status=EntryStatus.ACTIVE,
                break_duration_minutes=int(brk),
                clock_in_method=EntryMethod.MANUAL,
                notes=note,
            )
            if clock_out is not None:
                entry = replace(
                    entry,
                    clock_out=clock_out,
                    rounded_clock_out=self._round(clock_out, company_id, RoundingScope.CLOCK_OUT, resolved_shift_id),
                    clock_out_method=EntryMethod.MANUAL,
                    status=EntryStatus.COMPLETED,
                )
                entry = self._with_hours(entry)
            return PunchResult.success(uow.save(entry))

        return self._run("manual_entry", employee_id, company_id, op)

    def adjust(
        self,
        entry_id: int,
        *,
        actor_id: int,
        new_clock_in: Optional[datetime] = None,
        new_clock_out: Optional[datetime] = None,
        break_minutes: Optional[int] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PunchResult:
        """Privileged correction of a COMPLETED entry.

        Overwrites the given raw fields, re-rounds both punches with the rules
        in force now, recomputes hours and marks the entry ADJUSTED. The prior
        values go to the store's audit trail in the same transaction.
        """

        now = now or now_local()
        located = self._entries.get_by_id(entry_id)
        if located is None:
            return PunchResult.failed(FailureCode.ENTRY_NOT_FOUND, f"Entry {entry_id} does not exist")

        def op(uow: EntryUnitOfWork) -> PunchResult:
            before = uow.get_by_id(entry_id)
            if before is None:
                return PunchResult.failed(FailureCode.ENTRY_NOT_FOUND, f"Entry {entry_id} does not exist")
            if before.status != EntryStatus.COMPLETED:
                return PunchResult.failed(
                    FailureCode.ENTRY_NOT_ADJUSTABLE,
                    f"Only completed entries can be adjusted (entry {entry_id} is {before.status.value})",
                )

            clock_in = new_clock_in or before.clock_in
            clock_out = new_clock_out or before.clock_out
            brk = before.break_duration_minutes if break_minutes is None else int(break_minutes)
            if clock_out <= clock_in:
                return PunchResult.failed(FailureCode.INVALID_TIME_ORDERING, "Clock-out must be after clock-in")
            if brk < 0 or brk * 60 >= (clock_out - clock_in).total_seconds():
                return PunchResult.failed(FailureCode.INVALID_TIME_ORDERING, "Break does not fit inside the session")
            if before.break_start is not None and (
                before.break_start < clock_in or (before.break_end or before.break_start) > clock_out
            ):
                return PunchResult.failed(
                    FailureCode.INVALID_TIME_ORDERING, "Recorded break falls outside the corrected session"
                )

            after = replace(
                before,
                clock_in=clock_in,
                clock_out=clock_out,
                rounded_clock_in=self._round(clock_in, before.company_id, RoundingScope.CLOCK_IN, before.shift_id),
                rounded_clock_out=self._round(clock_out, before.company_id, RoundingScope.CLOCK_OUT, before.shift_id),
                break_duration_minutes=brk,
                status=EntryStatus.ADJUSTED,
                adjusted_by=actor_id,
            )
            saved = uow.save(self._with_hours(after))
            uow.record_adjustment(
                AdjustmentRecord(
                    entry_id=entry_id,
                    actor_id=actor_id,
                    before=before,
                    after=saved,
                    adjusted_at=now,
                    reason=clean_text(reason),
                )
            )
            return PunchResult.success(saved)

        return self._run("adjust", located.employee_id, located.company_id, op)

    # -- helpers ----------------------------------------------------------

    def _run(
        self,
        action: str,
        employee_id: int,
        company_id: int,
        op: Callable[[EntryUnitOfWork], PunchResult],
    ) -> PunchResult:
        try:
            with self._entries.transaction(employee_id, company_id) as uow:
                result = op(uow)
        except SessionConflict as exc:
            result = PunchResult.failed(FailureCode.SESSION_ALREADY_OPEN, str(exc))
        except InvalidRuleConfiguration as exc:
            result = PunchResult.failed(FailureCode.INVALID_RULE_CONFIGURATION, str(exc))

        if not result.ok:
            return self._reject(action, employee_id, result)

        logger.info(
            "%s employee=%s company=%s entry=%s status=%s",
            action,
            employee_id,
            company_id,
            result.entry.entry_id,
            result.entry.status.value,
        )
        return result

    @staticmethod
    def _reject(action: str, employee_id: int, result: PunchResult) -> PunchResult:
        logger.warning("%s rejected employee=%s: %s", action, employee_id, result.failure.code.value)
        return result

    @staticmethod
    def _close_break(entry: TimeEntry, now: datetime) -> TimeEntry:
        return replace(
            entry,
            break_end=now,
            break_duration_minutes=entry.break_duration_minutes + whole_minutes(now - entry.break_start),
            status=EntryStatus.ACTIVE,
        )

    def _round(self, raw: datetime, company_id: int, side: RoundingScope, shift_id: Optional[int]) -> datetime:
        return self._rounding.apply(raw, company_id=company_id, side=side, shift_id=shift_id)

    def _with_hours(self, entry: TimeEntry) -> TimeEntry:
        shift = self._shifts.get_shift(entry.shift_id)
        policy = self._policies.for_company(entry.company_id)
        return entry.with_hours(self._calculator.compute(entry, shift=shift, policy=policy))
