from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import LoanStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date, to_decimal
from .loan_repository import LoanRepository
from .model import Loan

_COLUMNS = (
    "loan_id, user_id, principal, balance, monthly_payment_percent, term_months, installment, status, "
    "purpose, start_date, end_date, archived_at"
)


def _row_to_loan(r: dict) -> Loan:
    return Loan(
        loan_id=int(r["loan_id"]),
        user_id=int(r["user_id"]),
        principal=to_decimal(r["principal"]),
        balance=to_decimal(r["balance"]),
        monthly_payment_percent=to_decimal(r["monthly_payment_percent"]),
        term_months=int(r["term_months"]),
        installment=to_decimal(r["installment"]),
        status=LoanStatus(r["status"]),
        purpose=r.get("purpose"),
        start_date=normalize_mysql_date(r["start_date"]),
        end_date=normalize_mysql_date(r["end_date"]),
        archived_at=r.get("archived_at"),
    )


class MySQLLoanRepository(LoanRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, loan_id: int) -> Optional[Loan]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM loans WHERE loan_id=%s", (loan_id,))
            row = fetchone(cur)
            return _row_to_loan(row) if row else None

    def create(
        self,
        *,
        user_id: int,
        principal: Decimal,
        monthly_payment_percent: Decimal,
        term_months: int,
        installment: Decimal,
        purpose: Optional[str],
        start_date: date,
        end_date: date,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO loans(user_id, principal, balance, monthly_payment_percent, term_months, installment,
                                  status, purpose, start_date, end_date)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user_id,
                    principal,
                    principal,
                    monthly_payment_percent,
                    term_months,
                    installment,
                    LoanStatus.ACTIVE.value,
                    purpose,
                    start_date,
                    end_date,
                ),
            )
            return int(cur.lastrowid)

    def list_loans(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[Loan]:
        sql = f"SELECT {_COLUMNS} FROM loans WHERE archived_at IS {'NOT NULL' if archived else 'NULL'}"
        params: list = []
        if user_id is not None:
            sql += " AND user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY start_date DESC, loan_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_loan(r) for r in fetchall(cur)]

    def list_due_for_user(self, user_id: int, period_end: date) -> Sequence[Loan]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM loans
                WHERE user_id=%s AND status=%s AND archived_at IS NULL AND balance > 0 AND start_date <= %s
                ORDER BY start_date, loan_id
                """,
                (user_id, LoanStatus.ACTIVE.value, period_end),
            )
            return [_row_to_loan(r) for r in fetchall(cur)]

    def apply_payment(self, loan_id: int, amount: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            apply_loan_payment(cur, loan_id, amount)
            return cur.rowcount > 0

    def archive(self, loan_id: int, *, archived_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE loans SET archived_at=%s WHERE loan_id=%s AND archived_at IS NULL",
                (archived_at, loan_id),
            )
            return cur.rowcount > 0


def apply_loan_payment(cur, loan_id: int, amount: Decimal) -> None:
    """Shared by the loan repository and payroll release (inside the caller's transaction)."""
    # MySQL evaluates SET assignments left to right: status sees the new balance.
    cur.execute(
        """
        UPDATE loans
        SET balance = GREATEST(balance - %s, 0),
            status = IF(balance <= 0, %s, status)
        WHERE loan_id=%s AND archived_at IS NULL
        """,
        (amount, LoanStatus.PAID.value, loan_id),
    )
