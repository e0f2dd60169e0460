from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import BookingStatus
from .model import Booking, BookingAttempt, MeetingRoom


class RoomRepository(Protocol):
    # Catalog
    def get_room(self, room_id: int) -> Optional[MeetingRoom]:
        raise NotImplementedError

    def list_rooms(self) -> Sequence[MeetingRoom]:
        raise NotImplementedError

    def create_room(self, *, name: str, capacity: int, location: Optional[str]) -> int:
        raise NotImplementedError

    def update_room(self, *, room_id: int, name: str, capacity: int, location: Optional[str]) -> bool:
        raise NotImplementedError

    def retire_room(self, *, room_id: int, retired_at: datetime) -> Optional[int]:
        """Soft-delete the room.

        Returns None on success, or the id of a confirmed booking that ends
        after ``retired_at`` (the room is then left untouched).
        """

        raise NotImplementedError

    # Bookings
    def create_booking_if_free(
        self,
        *,
        room_id: int,
        requester_id: int,
        start_at: datetime,
        end_at: datetime,
        created_at: datetime,
    ) -> BookingAttempt:
        """Atomically check the requester's active booking and room overlaps, then insert.

        Refused with GONE (room missing or retired), LIMIT (the requester
        already holds a confirmed booking) or BUSY (overlap with a confirmed
        booking of the room).
        """

        raise NotImplementedError

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        raise NotImplementedError

    def close_booking(self, *, booking_id: int, to_status: BookingStatus, closed_at: datetime) -> bool:
        """Move a confirmed booking to ``to_status``; False when it is no longer confirmed."""

        raise NotImplementedError

    def list_confirmed_between(self, *, room_id: int, start: datetime, end: datetime) -> Sequence[Booking]:
        """Confirmed bookings of the room overlapping [start, end), ordered by start."""

        raise NotImplementedError

    def list_bookings(self, *, requester_id: int, limit: int = 200) -> Sequence[Booking]:
        raise NotImplementedError
