from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (connection, cursor); commit when the block succeeds, roll back otherwise."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for `IN (...)`; callers must not pass an empty sequence."""
    return ", ".join(["%s"] * len(values))


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def normalize_mysql_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns arrive as `time`, `timedelta` (C extension) or 'HH:MM[:SS]' strings."""
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)
    if isinstance(value, str):
        hh, mm, *rest = value.strip().split(":") + [""]
        if not hh or not mm:
            raise ValueError(f"Invalid time string: {value!r}")
        return time(int(hh), int(mm), int(rest[0]) if rest and rest[0] else 0)
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
