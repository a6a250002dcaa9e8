from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..hours.policy import ClockPolicyResolver
from ..timeclock.repository import EntryRepository

_ZERO = Decimal("0.00")


@dataclass(frozen=True)
class EmployeeHours:
    employee_id: int
    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    shift_differential: Decimal
    entry_count: int


@dataclass(frozen=True)
class HoursSyncReport:
    rows: list[dict]
    summary: list[EmployeeHours]


class PayrollSyncService:
    """Aggregates closed clock entries into per-employee payroll hours.

    Each day's hours split at the daily threshold (the company's regular cap
    unless given). With a weekly threshold, regular hours past it inside one
    ISO week are reclassified as overtime.
    """

    def __init__(self, entries: EntryRepository, policies: Optional[ClockPolicyResolver] = None):
        self._entries = entries
        self._policies = policies or ClockPolicyResolver()

    def summarize(
        self,
        *,
        company_id: int,
        start: date,
        end: date,
        daily_threshold: Optional[Decimal] = None,
        weekly_threshold: Optional[Decimal] = None,
    ) -> HoursSyncReport:
        if daily_threshold is None:
            daily_threshold = self._policies.for_company(company_id).regular_cap_hours
        daily_threshold = Decimal(daily_threshold)

        days: dict[tuple[int, date], dict] = {}
        for e in self._entries.list_closed(company_id, start, end):
            key = (e.employee_id, e.clock_in.date())
            d = days.get(key)
            if not d:
                d = {"total": _ZERO, "differential": _ZERO, "count": 0}
                days[key] = d
            d["total"] += e.total_hours or _ZERO
            d["differential"] += e.shift_differential or _ZERO
            d["count"] += 1

        out_rows: list[dict] = []
        totals: dict[int, dict] = defaultdict(
            lambda: {"regular": _ZERO, "overtime": _ZERO, "differential": _ZERO, "count": 0}
        )
        week_regular: dict[tuple[int, int, int], Decimal] = defaultdict(lambda: _ZERO)

        for (employee_id, work_date), d in sorted(days.items()):
            regular = min(d["total"], daily_threshold)
            overtime = d["total"] - regular

            if weekly_threshold is not None:
                iso_year, iso_week, _ = work_date.isocalendar()
                week_key = (employee_id, iso_year, iso_week)
                allowed = max(Decimal(weekly_threshold) - week_regular[week_key], _ZERO)
                moved = max(regular - allowed, _ZERO)
                regular -= moved
                overtime += moved
                week_regular[week_key] += regular

            out_rows.append(
                {
                    "employee_id": employee_id,
                    "work_date": work_date.strftime("%Y-%m-%d"),
                    "regular_hours": regular,
                    "overtime_hours": overtime,
                    "total_hours": d["total"],
                    "entries": d["count"],
                }
            )

            t = totals[employee_id]
            t["regular"] += regular
            t["overtime"] += overtime
            t["differential"] += d["differential"]
            t["count"] += d["count"]

        summary = [
            EmployeeHours(
                employee_id=employee_id,
                regular_hours=t["regular"],
                overtime_hours=t["overtime"],
                total_hours=t["regular"] + t["overtime"],
                shift_differential=t["differential"],
                entry_count=t["count"],
            )
            for employee_id, t in totals.items()
        ]
        summary.sort(key=lambda s: s.total_hours, reverse=True)
        return HoursSyncReport(rows=out_rows, summary=summary)
