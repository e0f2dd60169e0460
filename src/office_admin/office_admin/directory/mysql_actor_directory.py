from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Actor
from .repository import ActorDirectory


class MySQLActorDirectory(ActorDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def resolve(self, actor_id: int) -> Optional[Actor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, full_name, role, supervisor_id, is_active
                FROM employees
                WHERE employee_id=%s
                """,
                (int(actor_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Actor(
                actor_id=int(row["employee_id"]),
                full_name=row["full_name"],
                role=Role(row["role"]),
                supervisor_id=int(row["supervisor_id"]) if row.get("supervisor_id") is not None else None,
                active=bool(row.get("is_active", True)),
            )

    def list_subordinate_ids(self, supervisor_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT employee_id FROM employees WHERE supervisor_id=%s ORDER BY employee_id",
                (int(supervisor_id),),
            )
            return [int(r["employee_id"]) for r in fetchall(cur)]
