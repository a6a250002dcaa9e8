from __future__ import annotations

from datetime import datetime, time, timedelta

import pytest
from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from src.time_attendance.time_attendance.core.enums import FailureCode
from src.time_attendance.time_attendance.database.mysql_base import LockTimeout, db_transaction, normalize_mysql_time
from src.time_attendance.time_attendance.rounding.policy import RoundingPolicy
from src.time_attendance.time_attendance.shifts.context import ShiftContext
from src.time_attendance.time_attendance.timeclock.mysql_entry_repository import MySQLEntryRepository
from src.time_attendance.time_attendance.timeclock.session import ClockSession


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self._last = None
        self.lastrowid = None

    def execute(self, sql, params=()):
        self._conn.log.append(("execute", " ".join(sql.split()), params))
        self._last = sql
        if "INSERT INTO time_clock_entries" in sql:
            if self._conn.duplicate_open_session:
                raise IntegrityError(msg="Duplicate entry for key 'uq_open_session'", errno=errorcode.ER_DUP_ENTRY)
            self.lastrowid = 42

    def fetchone(self):
        if "GET_LOCK" in self._last:
            return {"acquired": self._conn.lock_granted}
        if "RELEASE_LOCK" in self._last:
            return {"released": 1}
        return None

    def fetchall(self):
        return []

    def close(self):
        self._conn.log.append(("cursor_close",))


class FakeConnection:
    def __init__(self, *, lock_granted=1, duplicate_open_session=False):
        self.lock_granted = lock_granted
        self.duplicate_open_session = duplicate_open_session
        self.log = []

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def commit(self):
        self.log.append(("commit",))

    def rollback(self):
        self.log.append(("rollback",))

    def close(self):
        self.log.append(("close",))


class FakeFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self, *, database=True):
        return self.conn


def _actions(conn):
    return [entry[0] if entry[0] != "execute" else entry[1].split("(")[0] for entry in conn.log]


def test_transaction_commits_then_releases_lock():
    conn = FakeConnection()

    with db_transaction(FakeFactory(conn), lock_name="timeclock:1:7", timeout=3) as (_, cur):
        cur.execute("UPDATE time_clock_entries SET notes=%s WHERE entry_id=%s", ("x", 1))

    assert _actions(conn) == [
        "SELECT GET_LOCK",
        "commit",
        "UPDATE time_clock_entries SET notes=%s WHERE entry_id=%s",
        "commit",
        "SELECT RELEASE_LOCK",
        "cursor_close",
        "close",
    ]
    assert conn.log[0][2] == ("timeclock:1:7", 3)


def test_transaction_rolls_back_and_still_releases_lock():
    conn = FakeConnection()

    with pytest.raises(RuntimeError):
        with db_transaction(FakeFactory(conn), lock_name="timeclock:1:7"):
            raise RuntimeError("boom")

    actions = _actions(conn)
    assert "rollback" in actions
    assert actions.index("rollback") < actions.index("SELECT RELEASE_LOCK")
    assert actions[-1] == "close"


def test_lock_timeout_raises_without_running_body(caplog):
    conn = FakeConnection(lock_granted=0)
    caplog.set_level("WARNING")

    with pytest.raises(LockTimeout):
        with db_transaction(FakeFactory(conn), lock_name="timeclock:1:7", timeout=1):
            pytest.fail("body must not run")

    assert "SELECT RELEASE_LOCK" not in _actions(conn)
    assert _actions(conn)[-1] == "close"
    assert "timeclock:1:7 not acquired" in caplog.text


def _clock(conn):
    class NoRules:
        def list_active(self, company_id):
            return []

    class NoShifts:
        def list_assignments(self, employee_id, company_id=None):
            return []

        def get_shift(self, shift_id):
            return None

    return ClockSession(MySQLEntryRepository(FakeFactory(conn)), RoundingPolicy(NoRules()), ShiftContext(NoShifts()))


def test_clock_in_inserts_under_named_lock():
    conn = FakeConnection()

    result = _clock(conn).clock_in(7, 1, now=datetime(2026, 2, 2, 9, 0))

    assert result.ok
    assert result.entry.entry_id == 42
    statements = [e[1] for e in conn.log if e[0] == "execute"]
    assert "FOR UPDATE" in statements[1]
    assert statements[2].startswith("INSERT INTO time_clock_entries")


def test_unique_open_session_violation_maps_to_already_open():
    conn = FakeConnection(duplicate_open_session=True)

    result = _clock(conn).clock_in(7, 1, now=datetime(2026, 2, 2, 9, 0))

    assert result.failure.code == FailureCode.SESSION_ALREADY_OPEN
    assert ("rollback",) in conn.log


def test_normalize_mysql_time():
    assert normalize_mysql_time(None) is None
    assert normalize_mysql_time(time(8, 30)) == time(8, 30)
    assert normalize_mysql_time(timedelta(hours=22, minutes=15)) == time(22, 15)
    assert normalize_mysql_time("06:00") == time(6, 0)
    with pytest.raises(TypeError):
        normalize_mysql_time(830)
