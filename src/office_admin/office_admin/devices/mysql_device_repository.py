from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import ACTIVE_DEVICE_REQUEST_STATUSES, DeviceRequestStatus, DeviceStatus, Refusal
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Device, DeviceRequest, RequestAttempt
from .repository import DeviceRepository

_REQUEST_COLUMNS = """
    request_id, device_id, requester_id, status, requested_at,
    decided_by, decided_at, reject_reason, collected_at,
    returned_by, returned_at, closed_at
"""

# Columns a transition may write besides status.
_TRANSITION_FIELDS = frozenset(
    {"decided_by", "decided_at", "reject_reason", "collected_at", "returned_by", "returned_at", "closed_at"}
)


def _placeholders(n: int) -> str:
    return ",".join(["%s"] * n)


def _active_values() -> list[str]:
    return sorted(s.value for s in ACTIVE_DEVICE_REQUEST_STATUSES)


def _to_device(r: dict) -> Device:
    active_status = r.get("active_status")
    return Device(
        device_id=int(r["device_id"]),
        name=r["name"],
        device_type=r.get("device_type"),
        description=r.get("description"),
        status=DeviceStatus.from_active_request(DeviceRequestStatus(active_status) if active_status else None),
        created_at=r.get("created_at"),
        active_request_id=int(r["active_request_id"]) if r.get("active_request_id") is not None else None,
    )


def _to_request(r: dict) -> DeviceRequest:
    return DeviceRequest(
        request_id=int(r["request_id"]),
        device_id=int(r["device_id"]),
        requester_id=int(r["requester_id"]),
        status=DeviceRequestStatus(r["status"]),
        requested_at=r["requested_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        reject_reason=r.get("reject_reason"),
        collected_at=r.get("collected_at"),
        returned_by=r.get("returned_by"),
        returned_at=r.get("returned_at"),
        closed_at=r.get("closed_at"),
    )


class MySQLDeviceRepository(DeviceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Catalog --------
    def get_device(self, device_id: int) -> Optional[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT d.device_id, d.name, d.device_type, d.description, d.created_at,
                       r.request_id AS active_request_id, r.status AS active_status
                FROM devices d
                LEFT JOIN device_requests r ON r.active_device_id = d.device_id
                WHERE d.device_id=%s AND d.retired_at IS NULL
                """,
                (int(device_id),),
            )
            r = fetchone(cur)
            return _to_device(r) if r else None

    def list_devices(self, *, only_available: bool = False) -> Sequence[Device]:
        where = "d.retired_at IS NULL"
        if only_available:
            where += " AND r.request_id IS NULL"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT d.device_id, d.name, d.device_type, d.description, d.created_at,
                       r.request_id AS active_request_id, r.status AS active_status
                FROM devices d
                LEFT JOIN device_requests r ON r.active_device_id = d.device_id
                WHERE {where}
                ORDER BY d.device_id
                """
            )
            return [_to_device(r) for r in fetchall(cur)]

    def create_device(self, *, name: str, device_type: Optional[str], description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO devices(name, device_type, description) VALUES(%s,%s,%s)",
                (name, device_type, description),
            )
            return int(cur.lastrowid)

    def update_device(
        self,
        *,
        device_id: int,
        name: str,
        device_type: Optional[str],
        description: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE devices SET name=%s, device_type=%s, description=%s
                WHERE device_id=%s AND retired_at IS NULL
                """,
                (name, device_type, description, int(device_id)),
            )
            # rowcount is 0 when nothing changed; the service has already checked existence.
            return True

    def retire_device(self, *, device_id: int, retired_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT device_id FROM devices WHERE device_id=%s FOR UPDATE", (int(device_id),))
            if not fetchone(cur):
                return False
            cur.execute("SELECT request_id FROM device_requests WHERE active_device_id=%s", (int(device_id),))
            if fetchone(cur):
                return False
            cur.execute(
                "UPDATE devices SET retired_at=%s WHERE device_id=%s AND retired_at IS NULL",
                (retired_at, int(device_id)),
            )
            return cur.rowcount > 0

    # -------- Requests --------
    def create_request(self, *, device_id: int, requester_id: int, requested_at: datetime) -> RequestAttempt:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                # Serializes concurrent creates for the same device; other devices are untouched.
                cur.execute(
                    "SELECT device_id FROM devices WHERE device_id=%s AND retired_at IS NULL FOR UPDATE",
                    (int(device_id),),
                )
                if not fetchone(cur):
                    return RequestAttempt(refusal=Refusal.GONE)

                active = _active_values()
                cur.execute(
                    f"""
                    SELECT request_id FROM device_requests
                    WHERE device_id=%s AND status IN ({_placeholders(len(active))})
                    LIMIT 1
                    """,
                    (int(device_id), *active),
                )
                existing = fetchone(cur)
                if existing:
                    return RequestAttempt(refusal=Refusal.BUSY, active_request_id=int(existing["request_id"]))

                cur.execute(
                    """
                    INSERT INTO device_requests(device_id, requester_id, status, requested_at)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(device_id), int(requester_id), DeviceRequestStatus.PENDING.value, requested_at),
                )
                return RequestAttempt(request_id=int(cur.lastrowid))
        except mysql.connector.IntegrityError as e:
            # Unique index on active_device_id: a concurrent create won.
            if is_duplicate_key(e):
                return RequestAttempt(refusal=Refusal.BUSY)
            raise

    def get_request(self, request_id: int) -> Optional[DeviceRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM device_requests WHERE request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_active_request(self, device_id: int) -> Optional[DeviceRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM device_requests WHERE active_device_id=%s",
                (int(device_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def transition_request(
        self,
        *,
        request_id: int,
        from_statuses: AbstractSet[DeviceRequestStatus],
        to_status: DeviceRequestStatus,
        changes: Optional[Mapping[str, object]] = None,
    ) -> bool:
        changes = dict(changes or {})
        unknown = set(changes) - _TRANSITION_FIELDS
        if unknown:
            raise ValueError(f"Unsupported device request fields: {sorted(unknown)}")

        assignments = ["status=%s"] + [f"{col}=%s" for col in changes]
        expected = sorted(s.value for s in from_statuses)
        params: list[object] = [to_status.value, *changes.values(), int(request_id), *expected]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE device_requests
                SET {", ".join(assignments)}
                WHERE request_id=%s AND status IN ({_placeholders(len(expected))})
                """,
                tuple(params),
            )
            return cur.rowcount > 0

    def list_requests(
        self,
        *,
        status: Optional[DeviceRequestStatus] = None,
        requester_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[DeviceRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if requester_id is not None:
            clauses.append("requester_id=%s")
            params.append(int(requester_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM device_requests
                WHERE {where}
                ORDER BY requested_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]
