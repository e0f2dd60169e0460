from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    request_id, requester_id, leave_type, start_date, end_date, reason,
    status, created_at, decided_by, decided_at, reject_reason
"""


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        requester_id=int(r["requester_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r.get("reason"),
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        reject_reason=r.get("reject_reason"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_leave(
        self,
        *,
        requester_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(requester_id, leave_type, start_date, end_date, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(requester_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    reason,
                    LeaveStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def decide_leave(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        reject_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s, reject_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    decided_at,
                    reject_reason,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        requester_ids: Optional[Sequence[int]] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if requester_ids is not None:
            if not requester_ids:
                return []
            clauses.append(f"requester_id IN ({','.join(['%s'] * len(requester_ids))})")
            params.extend(int(i) for i in requester_ids)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_leave(r) for r in fetchall(cur)]
