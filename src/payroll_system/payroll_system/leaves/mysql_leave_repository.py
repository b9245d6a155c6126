from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = (
    "leave_id, user_id, leave_type, start_date, end_date, days, is_paid, reason, status, "
    "created_at, decided_by, decided_at, admin_note"
)


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=normalize_mysql_date(r["start_date"]),
        end_date=normalize_mysql_date(r["end_date"]),
        days=int(r["days"]),
        is_paid=bool(r["is_paid"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        admin_note=r.get("admin_note"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days: int,
        is_paid: bool,
        reason: str,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, leave_type, start_date, end_date, days, is_paid, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user_id,
                    leave_type.value,
                    start_date,
                    end_date,
                    days,
                    1 if is_paid else 0,
                    reason,
                    LeaveStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (leave_id,))
            row = fetchone(cur)
            return _row_to_leave(row) if row else None

    def list_requests(
        self, *, user_id: Optional[int] = None, status: Optional[LeaveStatus] = None, limit: int = 200
    ) -> Sequence[LeaveRequest]:
        where: list[str] = []
        params: list = []
        if user_id is not None:
            where.append("user_id=%s")
            params.append(int(user_id))
        if status is not None:
            where.append("status=%s")
            params.append(status.value)

        sql = f"SELECT {_COLUMNS} FROM leave_requests"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY created_at DESC, leave_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        admin_note: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s, admin_note=%s
                WHERE leave_id=%s AND status=%s
                """,
                (status.value, decided_by, decided_at, admin_note, leave_id, LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def find_approved_covering(self, user_id: int, day: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE user_id=%s AND status=%s AND start_date <= %s AND end_date >= %s
                ORDER BY start_date
                LIMIT 1
                """,
                (user_id, LeaveStatus.APPROVED.value, day, day),
            )
            row = fetchone(cur)
            return _row_to_leave(row) if row else None

    def list_approved_overlapping(self, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE user_id=%s AND status=%s AND start_date <= %s AND end_date >= %s
                ORDER BY start_date
                """,
                (user_id, LeaveStatus.APPROVED.value, end, start),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]
