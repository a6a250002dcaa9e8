from __future__ import annotations

import csv
import io
from decimal import Decimal, InvalidOperation
from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..container import Container
from ..core.enums import EntryMethod, FailureCode
from ..core.exceptions import ValidationError
from ..database.mysql_base import LockTimeout
from .model import PunchResult

_HTTP_STATUS = {
    FailureCode.SESSION_ALREADY_OPEN: 409,
    FailureCode.NO_ACTIVE_SESSION: 409,
    FailureCode.BREAK_ALREADY_IN_PROGRESS: 409,
    FailureCode.NO_BREAK_IN_PROGRESS: 409,
    FailureCode.ENTRY_NOT_ADJUSTABLE: 409,
    FailureCode.INVALID_TIME_ORDERING: 400,
    FailureCode.MISSING_NOTES_FOR_MANUAL_ENTRY: 400,
    FailureCode.INVALID_RULE_CONFIGURATION: 500,
    FailureCode.ENTRY_NOT_FOUND: 404,
}


def register(app: Flask, container: Container) -> None:
    clock = container.clock_session
    payroll = container.payroll_sync_service

    def _payload() -> dict:
        return request.get_json(silent=True) or {}

    def _int(data: dict, name: str) -> int:
        try:
            return int(data[name])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"{name} is required and must be an integer")

    def _opt_int(data: dict, name: str) -> Optional[int]:
        if data.get(name) is None or data.get(name) == "":
            return None
        return _int(data, name)

    def _ts(data: dict, name: str):
        value = data.get(name)
        if not value:
            return None
        try:
            parsed = parse_iso_datetime(str(value))
        except ValueError:
            raise ValidationError(f"{name} must be an ISO timestamp (YYYY-MM-DDTHH:MM)")
        if parsed.tzinfo is not None:
            raise ValidationError(f"{name} must be a local time without a UTC offset")
        return parsed

    def _text(data: dict, name: str) -> Optional[str]:
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")
        return value

    def _method(data: dict) -> EntryMethod:
        try:
            return EntryMethod(data.get("method") or EntryMethod.WEB.value)
        except ValueError:
            raise ValidationError("method must be one of: web, manual, device")

    def _decimal_arg(name: str) -> Optional[Decimal]:
        value = request.args.get(name)
        if not value:
            return None
        try:
            return Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"{name} must be a number")

    def _respond(result: PunchResult, *, created: bool = False):
        if not result.ok:
            failure = result.failure
            body = {"ok": False, "error": failure.code.value, "message": failure.message}
            return jsonify(body), _HTTP_STATUS.get(failure.code, 400)
        return jsonify({"ok": True, "entry": result.entry.to_dict()}), 201 if created else 200

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"ok": False, "error": "VALIDATION_ERROR", "message": str(exc)}), 400

    @app.errorhandler(LockTimeout)
    def handle_lock_timeout(exc: LockTimeout):
        return jsonify({"ok": False, "error": "BUSY", "message": str(exc)}), 503

    @app.route("/api/timeclock/clock-in", methods=["POST"], endpoint="timeclock_clock_in")
    def clock_in():
        data = _payload()
        result = clock.clock_in(
            _int(data, "employee_id"), _int(data, "company_id"), now=_ts(data, "timestamp"), method=_method(data)
        )
        return _respond(result, created=True)

    @app.route("/api/timeclock/break/start", methods=["POST"], endpoint="timeclock_break_start")
    def start_break():
        data = _payload()
        return _respond(clock.start_break(_int(data, "employee_id"), _int(data, "company_id"), now=_ts(data, "timestamp")))

    @app.route("/api/timeclock/break/end", methods=["POST"], endpoint="timeclock_break_end")
    def end_break():
        data = _payload()
        return _respond(clock.end_break(_int(data, "employee_id"), _int(data, "company_id"), now=_ts(data, "timestamp")))

    @app.route("/api/timeclock/clock-out", methods=["POST"], endpoint="timeclock_clock_out")
    def clock_out():
        data = _payload()
        result = clock.clock_out(
            _int(data, "employee_id"), _int(data, "company_id"), now=_ts(data, "timestamp"), method=_method(data)
        )
        return _respond(result)

    @app.route("/api/timeclock/entries", methods=["POST"], endpoint="timeclock_manual_entry")
    def manual_entry():
        data = _payload()
        clock_in_at = _ts(data, "clock_in")
        if clock_in_at is None:
            raise ValidationError("clock_in is required")
        result = clock.manual_entry(
            _int(data, "employee_id"),
            _int(data, "company_id"),
            clock_in=clock_in_at,
            clock_out=_ts(data, "clock_out"),
            shift_id=_opt_int(data, "shift_id"),
            notes=_text(data, "notes"),
            break_minutes=_opt_int(data, "break_minutes"),
        )
        return _respond(result, created=True)

    @app.route("/api/timeclock/entries/<int:entry_id>/adjust", methods=["POST"], endpoint="timeclock_adjust")
    def adjust(entry_id: int):
        data = _payload()
        result = clock.adjust(
            entry_id,
            actor_id=_int(data, "actor_id"),
            new_clock_in=_ts(data, "clock_in"),
            new_clock_out=_ts(data, "clock_out"),
            break_minutes=_opt_int(data, "break_minutes"),
            reason=_text(data, "reason"),
        )
        return _respond(result)

    def _summary_args():
        try:
            company_id = int(request.args["company_id"])
            start = parse_iso_date(request.args["start"])
            end = parse_iso_date(request.args["end"])
        except (KeyError, ValueError):
            raise ValidationError("company_id, start and end (YYYY-MM-DD) are required")
        if end < start:
            raise ValidationError("end must not be before start")
        return dict(
            company_id=company_id,
            start=start,
            end=end,
            daily_threshold=_decimal_arg("daily_threshold"),
            weekly_threshold=_decimal_arg("weekly_threshold"),
        )

    @app.route("/api/timeclock/payroll-summary", methods=["GET"], endpoint="timeclock_payroll_summary")
    def payroll_summary():
        report = payroll.summarize(**_summary_args())
        return jsonify(
            {
                "rows": [{k: str(v) if isinstance(v, Decimal) else v for k, v in r.items()} for r in report.rows],
                "summary": [
                    {
                        "employee_id": s.employee_id,
                        "regular_hours": str(s.regular_hours),
                        "overtime_hours": str(s.overtime_hours),
                        "total_hours": str(s.total_hours),
                        "shift_differential": str(s.shift_differential),
                        "entry_count": s.entry_count,
                    }
                    for s in report.summary
                ],
            }
        )

    @app.route("/api/timeclock/payroll-summary.csv", methods=["GET"], endpoint="timeclock_payroll_summary_csv")
    def payroll_summary_csv():
        args = _summary_args()
        report = payroll.summarize(**args)

        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=["employee_id", "work_date", "regular_hours", "overtime_hours", "total_hours", "entries"],
        )
        writer.writeheader()
        for r in report.rows:
            writer.writerow(r)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        filename = f"payroll_hours_{args['start'].strftime('%Y%m%d')}_{args['end'].strftime('%Y%m%d')}.csv"
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
