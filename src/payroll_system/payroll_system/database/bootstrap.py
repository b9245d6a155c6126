from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

# (name, email, password, role, personnel type name)
DEMO_ACCOUNTS = (
    ("Admin Demo", "admin@example.com", "admin123", "ADMIN", None),
    ("Maria Santos", "maria@example.com", "personnel123", "PERSONNEL", "Instructor"),
    ("Jose Reyes", "jose@example.com", "personnel123", "PERSONNEL", "Staff"),
)

_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")
_SQL_TOKEN = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|--[^\n]*|#[^\n]*|;", re.S)


def _target(db_config: dict) -> DBConfig:
    return DBConfig.from_mapping(
        {
            "host": db_config.get("host", "localhost"),
            "port": db_config.get("port", 3306),
            "user": db_config.get("user", "root"),
            "password": db_config.get("password", ""),
            "database": db_config.get("database", "payroll_db"),
        }
    )


@contextmanager
def _session(cfg: DBConfig, *, with_database: bool = True, dictionary: bool = False) -> Iterator:
    """One connection, one commit; the database name comes from config, never from the .sql file."""
    kwargs = {"host": cfg.host, "port": cfg.port, "user": cfg.user, "password": cfg.password, "use_pure": True}
    if with_database:
        kwargs["database"] = cfg.database
    conn = mysql.connector.connect(**kwargs)
    try:
        cur = conn.cursor(dictionary=dictionary)
        yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def split_sql(sql: str) -> list[str]:
    """Split a script into statements on top-level ';' (quotes and line comments respected)."""
    statements: list[str] = []
    start = 0
    pieces: list[str] = []
    for match in _SQL_TOKEN.finditer(sql):
        token = match.group(0)
        if token.startswith(("--", "#")):
            pieces.append(sql[start : match.start()])
            start = match.end()
        elif token == ";":
            pieces.append(sql[start : match.start()])
            stmt = "".join(pieces).strip()
            if stmt:
                statements.append(stmt)
            pieces = []
            start = match.end()
    pieces.append(sql[start:])
    tail = "".join(pieces).strip()
    if tail:
        statements.append(tail)
    return statements


def _run_script(db_config: dict, path: str | Path) -> int:
    sql = _DB_SELECTION.sub("", Path(path).read_text(encoding="utf-8"))
    statements = split_sql(sql)
    with _session(_target(db_config)) as cur:
        for stmt in statements:
            cur.execute(stmt)
    logger.info("Applied %s statement(s) from %s", len(statements), Path(path).name)
    return len(statements)


def ensure_database_exists(db_config: dict) -> None:
    cfg = _target(db_config)
    with _session(cfg, with_database=False) as cur:
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{cfg.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert the demo admin and personnel accounts (seed.sql must have run first)."""
    with _session(_target(db_config), dictionary=True) as cur:
        for name, email, password, role, type_name in DEMO_ACCOUNTS:
            type_id = None
            if type_name:
                cur.execute("SELECT personnel_type_id FROM personnel_types WHERE name=%s", (type_name,))
                row = cur.fetchone()
                if not row:
                    raise RuntimeError(f"Personnel type {type_name!r} is missing; run seed.sql first")
                type_id = int(row["personnel_type_id"])

            cur.execute(
                """
                INSERT INTO users (name, email, password_hash, role, personnel_type_id, is_active)
                VALUES (%s, %s, %s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name), password_hash=VALUES(password_hash), role=VALUES(role),
                    personnel_type_id=VALUES(personnel_type_id), is_active=1
                """,
                (name, email, generate_password_hash(password), role, type_id),
            )


def list_tables(db_config: dict) -> list[str]:
    with _session(_target(db_config)) as cur:
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
