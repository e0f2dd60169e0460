from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import BookingStatus, Refusal
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Booking, BookingAttempt, MeetingRoom
from .repository import RoomRepository

_BOOKING_COLUMNS = "booking_id, room_id, requester_id, start_at, end_at, status, created_at, closed_at"


def _to_room(r: dict) -> MeetingRoom:
    return MeetingRoom(
        room_id=int(r["room_id"]),
        name=r["name"],
        capacity=int(r["capacity"]),
        location=r.get("location"),
        created_at=r.get("created_at"),
    )


def _to_booking(r: dict) -> Booking:
    return Booking(
        booking_id=int(r["booking_id"]),
        room_id=int(r["room_id"]),
        requester_id=int(r["requester_id"]),
        start_at=r["start_at"],
        end_at=r["end_at"],
        status=BookingStatus(r["status"]),
        created_at=r["created_at"],
        closed_at=r.get("closed_at"),
    )


class MySQLRoomRepository(RoomRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Catalog --------
    def get_room(self, room_id: int) -> Optional[MeetingRoom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT room_id, name, capacity, location, created_at
                FROM meeting_rooms
                WHERE room_id=%s AND retired_at IS NULL
                """,
                (int(room_id),),
            )
            r = fetchone(cur)
            return _to_room(r) if r else None

    def list_rooms(self) -> Sequence[MeetingRoom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT room_id, name, capacity, location, created_at
                FROM meeting_rooms
                WHERE retired_at IS NULL
                ORDER BY name, room_id
                """
            )
            return [_to_room(r) for r in fetchall(cur)]

    def create_room(self, *, name: str, capacity: int, location: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO meeting_rooms(name, capacity, location) VALUES(%s,%s,%s)",
                (name, int(capacity), location),
            )
            return int(cur.lastrowid)

    def update_room(self, *, room_id: int, name: str, capacity: int, location: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE meeting_rooms SET name=%s, capacity=%s, location=%s
                WHERE room_id=%s AND retired_at IS NULL
                """,
                (name, int(capacity), location, int(room_id)),
            )
            return True

    def retire_room(self, *, room_id: int, retired_at: datetime) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Same lock as booking creation, so no booking can slip in meanwhile.
            cur.execute("SELECT room_id FROM meeting_rooms WHERE room_id=%s FOR UPDATE", (int(room_id),))
            fetchone(cur)
            cur.execute(
                """
                SELECT booking_id FROM bookings
                WHERE room_id=%s AND status=%s AND end_at > %s
                ORDER BY start_at
                LIMIT 1
                """,
                (int(room_id), BookingStatus.CONFIRMED.value, retired_at),
            )
            upcoming = fetchone(cur)
            if upcoming:
                return int(upcoming["booking_id"])
            cur.execute(
                "UPDATE meeting_rooms SET retired_at=%s WHERE room_id=%s AND retired_at IS NULL",
                (retired_at, int(room_id)),
            )
            return None

    # -------- Bookings --------
    def create_booking_if_free(
        self,
        *,
        room_id: int,
        requester_id: int,
        start_at: datetime,
        end_at: datetime,
        created_at: datetime,
    ) -> BookingAttempt:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock order is employee, then room. The employee row guards the
            # one-active-booking limit across rooms; the room row is the mutex
            # for that room's schedule.
            cur.execute("SELECT employee_id FROM employees WHERE employee_id=%s FOR UPDATE", (int(requester_id),))
            fetchone(cur)
            cur.execute(
                "SELECT room_id FROM meeting_rooms WHERE room_id=%s AND retired_at IS NULL FOR UPDATE",
                (int(room_id),),
            )
            if not fetchone(cur):
                return BookingAttempt(refusal=Refusal.GONE)

            cur.execute(
                f"""
                SELECT {_BOOKING_COLUMNS} FROM bookings
                WHERE requester_id=%s AND status=%s
                ORDER BY start_at
                LIMIT 1
                """,
                (int(requester_id), BookingStatus.CONFIRMED.value),
            )
            held = fetchone(cur)
            if held:
                return BookingAttempt(refusal=Refusal.LIMIT, blocking=_to_booking(held))

            # Half-open overlap: existing.start < new.end AND new.start < existing.end
            cur.execute(
                f"""
                SELECT {_BOOKING_COLUMNS} FROM bookings
                WHERE room_id=%s AND status=%s AND start_at < %s AND %s < end_at
                ORDER BY start_at
                LIMIT 1
                """,
                (int(room_id), BookingStatus.CONFIRMED.value, end_at, start_at),
            )
            clash = fetchone(cur)
            if clash:
                return BookingAttempt(refusal=Refusal.BUSY, blocking=_to_booking(clash))

            cur.execute(
                """
                INSERT INTO bookings(room_id, requester_id, start_at, end_at, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(room_id), int(requester_id), start_at, end_at, BookingStatus.CONFIRMED.value, created_at),
            )
            return BookingAttempt(booking_id=int(cur.lastrowid))

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_BOOKING_COLUMNS} FROM bookings WHERE booking_id=%s", (int(booking_id),))
            r = fetchone(cur)
            return _to_booking(r) if r else None

    def close_booking(self, *, booking_id: int, to_status: BookingStatus, closed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bookings SET status=%s, closed_at=%s
                WHERE booking_id=%s AND status=%s
                """,
                (to_status.value, closed_at, int(booking_id), BookingStatus.CONFIRMED.value),
            )
            return cur.rowcount > 0

    def list_confirmed_between(self, *, room_id: int, start: datetime, end: datetime) -> Sequence[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM bookings
                WHERE room_id=%s AND status=%s AND start_at < %s AND %s < end_at
                ORDER BY start_at, booking_id
                """,
                (int(room_id), BookingStatus.CONFIRMED.value, end, start),
            )
            return [_to_booking(r) for r in fetchall(cur)]

    def list_bookings(self, *, requester_id: int, limit: int = 200) -> Sequence[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM bookings
                WHERE requester_id=%s
                ORDER BY start_at DESC, booking_id DESC
                LIMIT %s
                """,
                (int(requester_id), int(limit)),
            )
            return [_to_booking(r) for r in fetchall(cur)]
