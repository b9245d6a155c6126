from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import CalculationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_decimal, to_decimal
from .model import Deduction, DeductionType
from .repository import DeductionRepository, DeductionTypeRepository

_TYPE_COLUMNS = "deduction_type_id, name, description, calculation_type, amount, percentage_value, is_mandatory, is_active"

_DEDUCTION_SELECT = """
    SELECT d.deduction_id, d.user_id, d.deduction_type_id, d.amount, d.notes, d.applied_at, d.archived_at,
           t.name AS type_name, t.is_mandatory
    FROM deductions d
    JOIN deduction_types t ON t.deduction_type_id = d.deduction_type_id
"""


def _row_to_type(r: dict) -> DeductionType:
    return DeductionType(
        deduction_type_id=int(r["deduction_type_id"]),
        name=r["name"],
        description=r.get("description"),
        calculation_type=CalculationType(r["calculation_type"]),
        amount=to_decimal(r["amount"]),
        percentage_value=optional_decimal(r.get("percentage_value")),
        is_mandatory=bool(r["is_mandatory"]),
        is_active=bool(r.get("is_active", True)),
    )


def _row_to_deduction(r: dict) -> Deduction:
    return Deduction(
        deduction_id=int(r["deduction_id"]),
        user_id=int(r["user_id"]),
        deduction_type_id=int(r["deduction_type_id"]),
        type_name=r["type_name"],
        amount=to_decimal(r["amount"]),
        notes=r.get("notes"),
        applied_at=r["applied_at"],
        archived_at=r.get("archived_at"),
        is_mandatory=bool(r.get("is_mandatory")),
    )


class MySQLDeductionTypeRepository(DeductionTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, deduction_type_id: int) -> Optional[DeductionType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM deduction_types WHERE deduction_type_id=%s", (deduction_type_id,))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def get_by_name(self, name: str) -> Optional[DeductionType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM deduction_types WHERE name=%s", (name,))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def list_all(self, *, active_only: bool = False) -> Sequence[DeductionType]:
        sql = f"SELECT {_TYPE_COLUMNS} FROM deduction_types"
        if active_only:
            sql += " WHERE is_active=1"
        sql += " ORDER BY name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return [_row_to_type(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        calculation_type: CalculationType,
        amount: Decimal,
        percentage_value: Optional[Decimal],
        is_mandatory: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deduction_types(name, description, calculation_type, amount, percentage_value, is_mandatory, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (name, description, calculation_type.value, amount, percentage_value, 1 if is_mandatory else 0),
            )
            return int(cur.lastrowid)

    def update(self, deduction_type: DeductionType) -> bool:
        t = deduction_type
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE deduction_types
                SET name=%s, description=%s, calculation_type=%s, amount=%s, percentage_value=%s,
                    is_mandatory=%s, is_active=%s
                WHERE deduction_type_id=%s
                """,
                (
                    t.name,
                    t.description,
                    t.calculation_type.value,
                    t.amount,
                    t.percentage_value,
                    1 if t.is_mandatory else 0,
                    1 if t.is_active else 0,
                    t.deduction_type_id,
                ),
            )
            return cur.rowcount > 0


class MySQLDeductionRepository(DeductionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, deduction_id: int) -> Optional[Deduction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_DEDUCTION_SELECT + " WHERE d.deduction_id=%s", (deduction_id,))
            row = fetchone(cur)
            return _row_to_deduction(row) if row else None

    def create(
        self,
        *,
        user_id: int,
        deduction_type_id: int,
        amount: Decimal,
        notes: Optional[str],
        applied_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deductions(user_id, deduction_type_id, amount, notes, applied_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (user_id, deduction_type_id, amount, notes, applied_at),
            )
            return int(cur.lastrowid)

    def list_live_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[Deduction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _DEDUCTION_SELECT
                + """
                WHERE d.user_id=%s AND d.archived_at IS NULL AND d.applied_at BETWEEN %s AND %s
                ORDER BY d.applied_at, d.deduction_id
                """,
                (user_id, start, end),
            )
            return [_row_to_deduction(r) for r in fetchall(cur)]

    def list_deductions(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[Deduction]:
        sql = _DEDUCTION_SELECT + (" WHERE d.archived_at IS NOT NULL" if archived else " WHERE d.archived_at IS NULL")
        params: list = []
        if user_id is not None:
            sql += " AND d.user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY d.applied_at DESC, d.deduction_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_deduction(r) for r in fetchall(cur)]

    def has_live_of_type(self, user_id: int, deduction_type_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM deductions
                WHERE user_id=%s AND deduction_type_id=%s AND archived_at IS NULL
                LIMIT 1
                """,
                (user_id, deduction_type_id),
            )
            return fetchone(cur) is not None

    def update_amount(self, deduction_id: int, amount: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE deductions SET amount=%s WHERE deduction_id=%s AND archived_at IS NULL",
                (amount, deduction_id),
            )
            return cur.rowcount > 0

    def archive(self, deduction_id: int, *, archived_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE deductions SET archived_at=%s WHERE deduction_id=%s AND archived_at IS NULL",
                (archived_at, deduction_id),
            )
            return cur.rowcount > 0
