from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes, skips '--' comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False
    in_comment = False
    prev = ""

    for ch in sql:
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            prev = ch
            continue

        if escape:
            buf.append(ch)
            escape = False
            prev = ch
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            prev = ch
            continue

        if ch == "-" and prev == "-" and not in_single and not in_double:
            buf.pop()
            in_comment = True
            prev = ""
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            prev = ch
            if stmt:
                yield stmt
            continue

        buf.append(ch)
        prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_sql_file(db_config: dict, *, sql_path: str | Path) -> None:
    target = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(sql_path).read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %s to %s", Path(sql_path).name, target.database)


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    apply_sql_file(db_config, sql_path=schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    apply_sql_file(db_config, sql_path=seed_path)


def ensure_demo_employees(db_config: dict) -> None:
    """Upsert demo accounts covering every role, with a supervisor chain.

    Password hashes are only consumed by the external login layer.
    """
    target = DBConfig.from_dict(db_config)

    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)

        def upsert(username: str, full_name: str, password: str, role: str, supervisor: str | None) -> None:
            supervisor_id = None
            if supervisor:
                cur.execute("SELECT employee_id FROM employees WHERE username=%s", (supervisor,))
                row = cur.fetchone()
                if not row:
                    raise RuntimeError(f"Missing supervisor {supervisor!r} for {username!r}")
                supervisor_id = int(row["employee_id"])

            password_hash = generate_password_hash(password)
            cur.execute("SELECT employee_id FROM employees WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE employees
                    SET full_name=%s, password_hash=%s, role=%s, supervisor_id=%s, is_active=1
                    WHERE username=%s
                    """,
                    (full_name, password_hash, role, supervisor_id, username),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO employees (username, full_name, password_hash, role, supervisor_id, is_active)
                    VALUES (%s, %s, %s, %s, %s, 1)
                    """,
                    (username, full_name, password_hash, role, supervisor_id),
                )

        upsert("admin", "System Administrator", "admin123", "super_admin", None)
        upsert("devices", "Device Desk", "devices123", "device_admin", "admin")
        upsert("lead", "Team Lead", "lead123", "supervisor", "admin")
        upsert("alice", "Alice Employee", "alice123", "employee", "lead")
        upsert("bob", "Bob Employee", "bob123", "employee", "lead")

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
