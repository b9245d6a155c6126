from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..common.datetime_utils import Period
from ..core.enums import PayrollStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_date, to_decimal
from ..deductions.mysql_loan_repository import apply_loan_payment
from ..settings.mysql_settings_repository import SETTINGS_ROW_ID
from .model import ArchivedPeriodSummary, PayrollEntry, ReleaseInstruction
from .repository import PayrollRepository

_SELECT = """
    SELECT p.entry_id, p.user_id, p.period_start, p.period_end, p.basic_salary, p.overtime, p.deductions,
           p.net_pay, p.status, p.created_at, p.released_at, p.archived_at, p.breakdown_snapshot,
           u.name AS user_name
    FROM payroll_entries p
    JOIN users u ON u.user_id = p.user_id
"""


def _row_to_entry(r: dict) -> PayrollEntry:
    return PayrollEntry(
        entry_id=int(r["entry_id"]),
        user_id=int(r["user_id"]),
        period_start=normalize_mysql_date(r["period_start"]),
        period_end=normalize_mysql_date(r["period_end"]),
        basic_salary=to_decimal(r["basic_salary"]),
        overtime=to_decimal(r["overtime"]),
        deductions=to_decimal(r["deductions"]),
        net_pay=to_decimal(r["net_pay"]),
        status=PayrollStatus(r["status"]),
        created_at=r.get("created_at"),
        released_at=r.get("released_at"),
        archived_at=r.get("archived_at"),
        breakdown_snapshot=r.get("breakdown_snapshot"),
        user_name=r.get("user_name"),
    )


def _release_in(cur, instruction: ReleaseInstruction) -> bool:
    cur.execute(
        """
        UPDATE payroll_entries
        SET status=%s, basic_salary=%s, overtime=%s, deductions=%s, net_pay=%s,
            breakdown_snapshot=%s, released_at=%s
        WHERE entry_id=%s AND status=%s AND archived_at IS NULL
        """,
        (
            PayrollStatus.RELEASED.value,
            instruction.basic_salary,
            instruction.overtime,
            instruction.deductions,
            instruction.net_pay,
            instruction.snapshot,
            instruction.released_at,
            instruction.entry_id,
            PayrollStatus.PENDING.value,
        ),
    )
    if cur.rowcount <= 0:
        return False

    ids = list(instruction.deduction_ids)
    if ids:
        cur.execute(
            f"UPDATE deductions SET archived_at=%s WHERE archived_at IS NULL AND deduction_id IN ({in_clause(ids)})",
            (instruction.released_at, *ids),
        )
    for loan_id, amount in instruction.loan_payments:
        apply_loan_payment(cur, loan_id, amount)
    return True


def _set_period(cur, period: Period) -> None:
    cur.execute(
        "UPDATE attendance_settings SET period_start=%s, period_end=%s WHERE settings_id=%s",
        (period.start, period.end, SETTINGS_ROW_ID),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, entry_id: int) -> Optional[PayrollEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.entry_id=%s", (entry_id,))
            row = fetchone(cur)
            return _row_to_entry(row) if row else None

    def list_for_period(self, period: Period, *, live_only: bool = True) -> Sequence[PayrollEntry]:
        sql = _SELECT + " WHERE p.period_start=%s AND p.period_end=%s"
        if live_only:
            sql += " AND p.archived_at IS NULL"
        sql += " ORDER BY u.name, p.entry_id"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (period.start, period.end))
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int, *, statuses: Sequence[PayrollStatus]) -> Sequence[PayrollEntry]:
        values = [s.value for s in statuses]
        if not values:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE p.user_id=%s AND p.status IN ({in_clause(values)})"
                " ORDER BY p.period_start DESC, p.entry_id DESC",
                (user_id, *values),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        user_id: int,
        period: Period,
        basic_salary: Decimal,
        overtime: Decimal,
        deductions: Decimal,
        net_pay: Decimal,
        created_at: datetime,
    ) -> int:
        try:
            return self._insert(user_id, period, basic_salary, overtime, deductions, net_pay, created_at)
        except mysql_errors.IntegrityError as exc:
            raise ConflictError(
                f"User {user_id} already has a live payroll entry for {period.start} to {period.end}"
            ) from exc

    def _insert(self, user_id, period, basic_salary, overtime, deductions, net_pay, created_at) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_entries(user_id, period_start, period_end, basic_salary, overtime, deductions,
                                            net_pay, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user_id,
                    period.start,
                    period.end,
                    basic_salary,
                    overtime,
                    deductions,
                    net_pay,
                    PayrollStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update_pending_totals(
        self, entry_id: int, *, basic_salary: Decimal, overtime: Decimal, deductions: Decimal, net_pay: Decimal
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_entries
                SET basic_salary=%s, overtime=%s, deductions=%s, net_pay=%s
                WHERE entry_id=%s AND status=%s AND archived_at IS NULL
                """,
                (basic_salary, overtime, deductions, net_pay, entry_id, PayrollStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def release(self, instruction: ReleaseInstruction) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return _release_in(cur, instruction)

    def release_period(self, instructions: Sequence[ReleaseInstruction], *, next_period: Period) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            released = sum(1 for instr in instructions if _release_in(cur, instr))
            _set_period(cur, next_period)
            return released

    def archive(self, entry_id: int, *, archived_at: datetime, snapshot_if_missing: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_entries
                SET status=%s, archived_at=%s, breakdown_snapshot=COALESCE(breakdown_snapshot, %s)
                WHERE entry_id=%s AND status=%s AND archived_at IS NULL
                """,
                (
                    PayrollStatus.ARCHIVED.value,
                    archived_at,
                    snapshot_if_missing,
                    entry_id,
                    PayrollStatus.RELEASED.value,
                ),
            )
            return cur.rowcount > 0

    def archive_released(self, *, archived_at: datetime, ended_before: Optional[date] = None) -> int:
        sql = "UPDATE payroll_entries SET status=%s, archived_at=%s WHERE status=%s AND archived_at IS NULL"
        params: list = [PayrollStatus.ARCHIVED.value, archived_at, PayrollStatus.RELEASED.value]
        if ended_before is not None:
            sql += " AND period_end < %s"
            params.append(ended_before)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return int(cur.rowcount or 0)

    def delete_pending(self, entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM payroll_entries WHERE entry_id=%s AND status=%s",
                (entry_id, PayrollStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def reset(self, *, archived_at: datetime, next_period: Period) -> dict:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll_entries SET status=%s, archived_at=%s WHERE status=%s AND archived_at IS NULL",
                (PayrollStatus.ARCHIVED.value, archived_at, PayrollStatus.RELEASED.value),
            )
            archived = int(cur.rowcount or 0)
            cur.execute(
                "DELETE FROM payroll_entries WHERE period_end < period_start AND status=%s",
                (PayrollStatus.PENDING.value,),
            )
            deleted = int(cur.rowcount or 0)
            _set_period(cur, next_period)
            return {"archived": archived, "deleted": deleted}

    def list_archived_periods(self) -> Sequence[ArchivedPeriodSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_start, period_end, COUNT(*) AS entries,
                       COALESCE(SUM(basic_salary), 0) AS total_basic,
                       COALESCE(SUM(overtime), 0) AS total_overtime,
                       COALESCE(SUM(deductions), 0) AS total_deductions,
                       COALESCE(SUM(net_pay), 0) AS total_net,
                       MAX(archived_at) AS archived_at
                FROM payroll_entries
                WHERE status=%s
                GROUP BY period_start, period_end
                ORDER BY period_start DESC
                """,
                (PayrollStatus.ARCHIVED.value,),
            )
            return [
                ArchivedPeriodSummary(
                    period_start=normalize_mysql_date(r["period_start"]),
                    period_end=normalize_mysql_date(r["period_end"]),
                    entries=int(r["entries"]),
                    total_basic=to_decimal(r["total_basic"]),
                    total_overtime=to_decimal(r["total_overtime"]),
                    total_deductions=to_decimal(r["total_deductions"]),
                    total_net=to_decimal(r["total_net"]),
                    archived_at=r.get("archived_at"),
                )
                for r in fetchall(cur)
            ]
