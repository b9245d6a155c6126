from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_date, normalize_mysql_time
from .model import AttendanceSettings
from .repository import SettingsRepository

SETTINGS_ROW_ID = 1


def row_to_settings(row: dict) -> AttendanceSettings:
    return AttendanceSettings(
        period_start=normalize_mysql_date(row.get("period_start")),
        period_end=normalize_mysql_date(row.get("period_end")),
        time_in_start=normalize_mysql_time(row.get("time_in_start")),
        time_in_end=normalize_mysql_time(row.get("time_in_end")),
        no_time_in_cutoff=bool(row.get("no_time_in_cutoff")),
        time_out_start=normalize_mysql_time(row.get("time_out_start")),
        time_out_end=normalize_mysql_time(row.get("time_out_end")),
        no_time_out_cutoff=bool(row.get("no_time_out_cutoff")),
        auto_mark_absent=bool(row.get("auto_mark_absent", True)),
        updated_at=row.get("updated_at"),
    )


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM attendance_settings WHERE settings_id=%s", (SETTINGS_ROW_ID,))
            row = fetchone(cur)
            return row_to_settings(row) if row else None

    def save(self, settings: AttendanceSettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_settings(
                    settings_id, period_start, period_end, time_in_start, time_in_end, no_time_in_cutoff,
                    time_out_start, time_out_end, no_time_out_cutoff, auto_mark_absent
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    period_start=VALUES(period_start),
                    period_end=VALUES(period_end),
                    time_in_start=VALUES(time_in_start),
                    time_in_end=VALUES(time_in_end),
                    no_time_in_cutoff=VALUES(no_time_in_cutoff),
                    time_out_start=VALUES(time_out_start),
                    time_out_end=VALUES(time_out_end),
                    no_time_out_cutoff=VALUES(no_time_out_cutoff),
                    auto_mark_absent=VALUES(auto_mark_absent)
                """,
                (
                    SETTINGS_ROW_ID,
                    settings.period_start,
                    settings.period_end,
                    settings.time_in_start,
                    settings.time_in_end,
                    1 if settings.no_time_in_cutoff else 0,
                    settings.time_out_start,
                    settings.time_out_end,
                    1 if settings.no_time_out_cutoff else 0,
                    1 if settings.auto_mark_absent else 0,
                ),
            )
