from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

from ..core.exceptions import DomainError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


class LockTimeout(DomainError):
    """Raised when a named lock cannot be taken before the timeout."""


@contextmanager
def db_transaction(conn_factory: DatabaseConnection, *, lock_name: str, timeout: int = 10):
    """One transaction serialized by a MySQL named lock.

    The lock is taken before the transaction starts and released after it has
    committed or rolled back, so guard reads and writes of concurrent callers
    holding the same lock name never interleave.
    """

    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=True)
    try:
        cur.execute("SELECT GET_LOCK(%s, %s) AS acquired", (lock_name, int(timeout)))
        row = cur.fetchone()
        if not row or int(row["acquired"] or 0) != 1:
            logger.warning("Lock %s not acquired within %ss", lock_name, timeout)
            raise LockTimeout(f"Could not acquire lock {lock_name!r} within {timeout}s")
        # Named locks are session scoped; end the lock query's implicit
        # transaction so the guarded work reads a fresh snapshot.
        conn.commit()
        try:
            yield conn, cur
            conn.commit()
        except Exception:
            logger.info("Rolled back transaction under lock %s", lock_name)
            conn.rollback()
            raise
        finally:
            cur.execute("SELECT RELEASE_LOCK(%s) AS released", (lock_name,))
            cur.fetchone()
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return time(hour=hours, minute=minutes, second=seconds)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
