from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .personnel_type_model import PersonnelType
from .personnel_type_repository import PersonnelTypeRepository

_COLUMNS = "personnel_type_id, name, basic_salary, is_active"


def _row_to_type(r: dict) -> PersonnelType:
    return PersonnelType(
        personnel_type_id=int(r["personnel_type_id"]),
        name=r["name"],
        basic_salary=to_decimal(r["basic_salary"]),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLPersonnelTypeRepository(PersonnelTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, personnel_type_id: int) -> Optional[PersonnelType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM personnel_types WHERE personnel_type_id=%s", (personnel_type_id,))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def get_by_name(self, name: str) -> Optional[PersonnelType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM personnel_types WHERE name=%s", (name,))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def list_all(self) -> Sequence[PersonnelType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM personnel_types ORDER BY name")
            return [_row_to_type(r) for r in fetchall(cur)]

    def create(self, *, name: str, basic_salary: Decimal) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO personnel_types(name, basic_salary, is_active) VALUES(%s,%s,1)",
                (name, basic_salary),
            )
            return int(cur.lastrowid)

    def update(self, personnel_type_id: int, *, name: str, basic_salary: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE personnel_types SET name=%s, basic_salary=%s WHERE personnel_type_id=%s",
                (name, basic_salary, personnel_type_id),
            )
            return cur.rowcount > 0

    def set_active(self, personnel_type_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE personnel_types SET is_active=%s WHERE personnel_type_id=%s",
                (1 if is_active else 0, personnel_type_id),
            )
            return cur.rowcount > 0
