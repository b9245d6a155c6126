"""Report payroll rows that break the one-live-entry-per-period rule.

Nothing is repaired unless `--fix` is given, and then only extra PENDING rows are deleted:
per (user, period) the RELEASED row is kept if there is one, else the oldest row.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.payroll_system.payroll_system.database.connection import DBConfig, DatabaseConnection
from src.payroll_system.payroll_system.database.mysql_base import db_cursor, fetchall, in_clause


def find_duplicates(conn: DatabaseConnection) -> list[dict]:
    with db_cursor(conn) as (_, cur):
        cur.execute(
            """
            SELECT user_id, period_start, period_end, COUNT(*) AS live_entries,
                   GROUP_CONCAT(CONCAT(entry_id, ':', status) ORDER BY entry_id) AS entries
            FROM payroll_entries
            WHERE archived_at IS NULL
            GROUP BY user_id, period_start, period_end
            HAVING COUNT(*) > 1
            """
        )
        return fetchall(cur)


def find_inverted_periods(conn: DatabaseConnection) -> list[dict]:
    with db_cursor(conn) as (_, cur):
        cur.execute(
            "SELECT entry_id, user_id, period_start, period_end, status FROM payroll_entries "
            "WHERE period_end < period_start"
        )
        return fetchall(cur)


def extra_pending_ids(entries: str) -> list[int]:
    parsed = [(int(eid), status) for eid, status in (item.split(":") for item in entries.split(","))]
    released = [eid for eid, status in parsed if status == "RELEASED"]
    keep = released[0] if released else parsed[0][0]
    return [eid for eid, status in parsed if eid != keep and status == "PENDING"]


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--fix", action="store_true", help="delete extra PENDING rows")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(settings.DB_CONFIG))

    duplicates = find_duplicates(conn)
    for row in duplicates:
        print(
            f"DUPLICATE user={row['user_id']} period={row['period_start']}..{row['period_end']} "
            f"entries={row['entries']}"
        )
    for row in find_inverted_periods(conn):
        print(
            f"INVERTED-PERIOD entry={row['entry_id']} user={row['user_id']} "
            f"period={row['period_start']}..{row['period_end']} status={row['status']}"
        )

    if not args.fix:
        print(f"OK: {len(duplicates)} duplicate group(s) found (run with --fix to delete extra PENDING rows)")
        return

    to_delete = [eid for row in duplicates for eid in extra_pending_ids(row["entries"])]
    if to_delete:
        with db_cursor(conn) as (_, cur):
            cur.execute(
                f"DELETE FROM payroll_entries WHERE status='PENDING' AND entry_id IN ({in_clause(to_delete)})",
                tuple(to_delete),
            )
    print(f"OK: deleted {len(to_delete)} extra PENDING row(s)")


if __name__ == "__main__":
    main()
