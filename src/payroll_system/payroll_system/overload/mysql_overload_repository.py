from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, to_decimal
from .model import OverloadPay
from .repository import OverloadPayRepository

_COLUMNS = "overload_id, user_id, amount, notes, applied_at, archived_at"


def _row_to_overload(r: dict) -> OverloadPay:
    return OverloadPay(
        overload_id=int(r["overload_id"]),
        user_id=int(r["user_id"]),
        amount=to_decimal(r["amount"]),
        notes=r.get("notes"),
        applied_at=r["applied_at"],
        archived_at=r.get("archived_at"),
    )


class MySQLOverloadPayRepository(OverloadPayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, amount: Decimal, notes: Optional[str], applied_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO overload_pays(user_id, amount, notes, applied_at) VALUES(%s,%s,%s,%s)",
                (user_id, amount, notes, applied_at),
            )
            return int(cur.lastrowid)

    def list_overload_pays(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[OverloadPay]:
        sql = f"SELECT {_COLUMNS} FROM overload_pays WHERE archived_at IS {'NOT NULL' if archived else 'NULL'}"
        params: list = []
        if user_id is not None:
            sql += " AND user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY applied_at DESC, overload_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_overload(r) for r in fetchall(cur)]

    def list_live_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[OverloadPay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM overload_pays
                WHERE user_id=%s AND archived_at IS NULL AND applied_at BETWEEN %s AND %s
                ORDER BY applied_at, overload_id
                """,
                (user_id, start, end),
            )
            return [_row_to_overload(r) for r in fetchall(cur)]

    def archive(self, overload_id: int, *, archived_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE overload_pays SET archived_at=%s WHERE overload_id=%s AND archived_at IS NULL",
                (archived_at, overload_id),
            )
            return cur.rowcount > 0
