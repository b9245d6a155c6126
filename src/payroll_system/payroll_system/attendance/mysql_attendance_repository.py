from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import AttendanceDayRow, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, user_id, work_date, time_in, time_out, status, note"


def _row_to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        user_id=int(row["user_id"]),
        work_date=normalize_mysql_date(row["work_date"]),
        time_in=row.get("time_in"),
        time_out=row.get("time_out"),
        status=AttendanceStatus(row["status"]),
        note=row.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (attendance_id,))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (user_id, work_date),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE user_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date
                """,
                (user_id, start, end),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_day(self, work_date: date) -> Sequence[AttendanceDayRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id AS u_id, u.name, u.email,
                       a.attendance_id, a.user_id, a.work_date, a.time_in, a.time_out, a.status, a.note
                FROM users u
                LEFT JOIN attendance_records a ON a.user_id = u.user_id AND a.work_date = %s
                WHERE u.role = %s AND u.is_active = 1
                ORDER BY u.name
                """,
                (work_date, Role.PERSONNEL.value),
            )
            out: list[AttendanceDayRow] = []
            for r in fetchall(cur):
                out.append(
                    AttendanceDayRow(
                        user_id=int(r["u_id"]),
                        name=r["name"],
                        email=r["email"],
                        record=_row_to_record(r) if r.get("attendance_id") else None,
                    )
                )
            return out

    def create_record(
        self,
        *,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        time_in: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, work_date, time_in, status, note)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (user_id, work_date, time_in, status.value, note),
            )
            return int(cur.lastrowid)

    def create_pending(self, *, user_ids: Sequence[int], days: Sequence[date]) -> int:
        rows = [(uid, d, AttendanceStatus.PENDING.value) for uid in user_ids for d in days]
        if not rows:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT IGNORE INTO attendance_records(user_id, work_date, status) VALUES(%s,%s,%s)",
                rows,
            )
            return max(int(cur.rowcount), 0)

    def record_time_in(
        self, *, attendance_id: int, time_in: datetime, status: AttendanceStatus, note: Optional[str] = None
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET time_in=%s, status=%s, note=%s
                WHERE attendance_id=%s AND time_in IS NULL
                """,
                (time_in, status.value, note, attendance_id),
            )
            return cur.rowcount > 0

    def record_time_out(
        self, *, attendance_id: int, time_out: datetime, status: AttendanceStatus, note: Optional[str] = None
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET time_out=%s, status=%s, note=%s
                WHERE attendance_id=%s AND time_out IS NULL
                """,
                (time_out, status.value, note, attendance_id),
            )
            return cur.rowcount > 0

    def list_pending_before(self, day: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE status=%s AND time_in IS NULL AND work_date < %s
                ORDER BY work_date, user_id
                """,
                (AttendanceStatus.PENDING.value, day),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def mark_on_leave(self, *, user_id: int, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s
                WHERE user_id=%s AND work_date BETWEEN %s AND %s AND time_in IS NULL AND status IN (%s, %s)
                """,
                (
                    AttendanceStatus.ON_LEAVE.value,
                    user_id,
                    start,
                    end,
                    AttendanceStatus.PENDING.value,
                    AttendanceStatus.ABSENT.value,
                ),
            )
            return int(cur.rowcount)

    def update_status(self, *, attendance_id: int, status: AttendanceStatus, note: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET status=%s, note=COALESCE(%s, note) WHERE attendance_id=%s",
                (status.value, note, attendance_id),
            )
            return cur.rowcount > 0
