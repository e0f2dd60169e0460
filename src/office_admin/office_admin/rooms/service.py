from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..approval.gate import require_owner, require_role
from ..common.datetime_utils import day_bounds, now_local
from ..common.validators import optional_text, require_non_empty, require_positive_int
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ALL_ROLES, ROOM_ADMIN_ROLES, BookingStatus, Refusal
from ..core.exceptions import (
    BookingLimitError,
    ConflictError,
    InvalidIntervalError,
    InvalidTransitionError,
    NotFoundError,
)
from ..directory.model import Actor
from .model import Booking, BookingAttempt, MeetingRoom, RoomAvailability, TimeInterval, free_slots_for_day
from .repository import RoomRepository

logger = logging.getLogger(__name__)


def _blocking_id(attempt: BookingAttempt) -> Optional[int]:
    return attempt.blocking.booking_id if attempt.blocking else None


def _describe(booking: Optional[Booking]) -> Optional[dict]:
    if booking is None:
        return None
    return {
        "booking_id": booking.booking_id,
        "room_id": booking.room_id,
        "requester_id": booking.requester_id,
        "start_at": booking.start_at,
        "end_at": booking.end_at,
    }


class MeetingRoomService:
    """Use case: maintain the meeting room catalog (super admin)."""

    def __init__(self, rooms: RoomRepository):
        self._rooms = rooms

    def _get(self, room_id: int) -> MeetingRoom:
        room = self._rooms.get_room(int(room_id))
        if not room:
            raise NotFoundError(f"Meeting room {room_id} not found")
        return room

    def get_room(self, *, actor: Actor, room_id: int) -> MeetingRoom:
        require_role(actor, ALL_ROLES, operation="view meeting rooms")
        return self._get(room_id)

    def list_rooms(self, *, actor: Actor) -> Sequence[MeetingRoom]:
        require_role(actor, ALL_ROLES, operation="view meeting rooms")
        return self._rooms.list_rooms()

    def add_room(self, *, actor: Actor, name: str, capacity: int, location: str = "") -> MeetingRoom:
        require_role(actor, ROOM_ADMIN_ROLES, operation="add meeting rooms")
        room_id = self._rooms.create_room(
            name=require_non_empty(name, "Room name"),
            capacity=require_positive_int(capacity, "Capacity"),
            location=optional_text(location, "Location"),
        )
        logger.info("Meeting room %s added by actor=%s", room_id, actor.actor_id)
        return self._get(room_id)

    def update_room(
        self,
        *,
        actor: Actor,
        room_id: int,
        name: Optional[str] = None,
        capacity: Optional[int] = None,
        location: Optional[str] = None,
    ) -> MeetingRoom:
        require_role(actor, ROOM_ADMIN_ROLES, operation="update meeting rooms")
        current = self._get(room_id)
        self._rooms.update_room(
            room_id=current.room_id,
            name=require_non_empty(name, "Room name") if name is not None else current.name,
            capacity=require_positive_int(capacity, "Capacity") if capacity is not None else current.capacity,
            location=optional_text(location, "Location") if location is not None else current.location,
        )
        return self._get(current.room_id)

    def retire_room(self, *, actor: Actor, room_id: int, now: datetime | None = None) -> None:
        require_role(actor, ROOM_ADMIN_ROLES, operation="retire meeting rooms")
        room = self._get(room_id)
        blocking = self._rooms.retire_room(room_id=room.room_id, retired_at=now or now_local())
        if blocking is not None:
            raise ConflictError("Meeting room still has upcoming bookings", conflicting_id=blocking)
        logger.info("Meeting room %s retired by actor=%s", room.room_id, actor.actor_id)


class BookingService:
    """Meeting room booking engine.

    Bookings start ``confirmed`` and end ``completed`` or ``cancelled``. Only
    confirmed bookings take part in overlap checks; the others stay as history.
    """

    def __init__(self, rooms: RoomRepository):
        self._rooms = rooms

    def _get(self, booking_id: int) -> Booking:
        booking = self._rooms.get_booking(int(booking_id))
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def _get_room(self, room_id: int) -> MeetingRoom:
        room = self._rooms.get_room(int(room_id))
        if not room:
            raise NotFoundError(f"Meeting room {room_id} not found")
        return room

    def book(
        self,
        *,
        actor: Actor,
        room_id: int,
        start_at: datetime,
        end_at: datetime,
        now: datetime | None = None,
    ) -> Booking:
        require_role(actor, ALL_ROLES, operation="book meeting rooms")

        interval = TimeInterval(start_at, end_at)
        if not interval.is_valid:
            raise InvalidIntervalError("Booking end must be after its start")

        room = self._get_room(room_id)
        attempt = self._rooms.create_booking_if_free(
            room_id=room.room_id,
            requester_id=actor.actor_id,
            start_at=interval.start,
            end_at=interval.end,
            created_at=now or now_local(),
        )
        if attempt.refusal == Refusal.GONE:
            raise NotFoundError(f"Meeting room {room_id} not found")
        if attempt.refusal == Refusal.LIMIT:
            logger.warning("Booking limit hit by actor=%s (holds booking %s)", actor.actor_id, _blocking_id(attempt))
            raise BookingLimitError(
                "You already hold an active booking; complete or cancel it first",
                conflicting_id=_blocking_id(attempt),
                details=_describe(attempt.blocking),
            )
        if attempt.refusal == Refusal.BUSY:
            logger.warning(
                "Booking conflict on room %s for [%s, %s) by actor=%s",
                room.room_id,
                interval.start,
                interval.end,
                actor.actor_id,
            )
            raise ConflictError(
                "The room is already booked for an overlapping time",
                conflicting_id=_blocking_id(attempt),
                details=_describe(attempt.blocking),
            )
        booking_id = attempt.booking_id

        logger.info(
            "Booking %s confirmed on room %s for [%s, %s) by actor=%s",
            booking_id,
            room.room_id,
            interval.start,
            interval.end,
            actor.actor_id,
        )
        return self._get(booking_id)

    def _close(self, *, actor: Actor, booking_id: int, to_status: BookingStatus, verb: str, now: datetime | None) -> Booking:
        require_role(actor, ALL_ROLES, operation=f"{verb} bookings")
        booking = self._get(booking_id)
        require_owner(actor, booking.requester_id, operation=f"{verb} this booking")

        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidTransitionError(f"Cannot {verb} a booking in state '{booking.status.value}'")
        if not self._rooms.close_booking(booking_id=booking.booking_id, to_status=to_status, closed_at=now or now_local()):
            current = self._get(booking.booking_id)
            raise InvalidTransitionError(f"Cannot {verb} a booking in state '{current.status.value}'")

        logger.info("Booking %s -> %s by actor=%s", booking.booking_id, to_status.value, actor.actor_id)
        return self._get(booking.booking_id)

    def complete(self, *, actor: Actor, booking_id: int, now: datetime | None = None) -> Booking:
        return self._close(actor=actor, booking_id=booking_id, to_status=BookingStatus.COMPLETED, verb="complete", now=now)

    def cancel(self, *, actor: Actor, booking_id: int, now: datetime | None = None) -> Booking:
        return self._close(actor=actor, booking_id=booking_id, to_status=BookingStatus.CANCELLED, verb="cancel", now=now)

    def availability(self, *, actor: Actor, room_id: int, day: date) -> RoomAvailability:
        require_role(actor, ALL_ROLES, operation="view room availability")
        room = self._get_room(room_id)
        day_start, day_end = day_bounds(day)
        bookings = sorted(
            (
                b
                for b in self._rooms.list_confirmed_between(room_id=room.room_id, start=day_start, end=day_end)
                if b.interval.intersects_day(day)
            ),
            key=lambda b: (b.start_at, b.booking_id),
        )
        return RoomAvailability(
            room=room,
            day=day,
            bookings=tuple(bookings),
            free_slots=tuple(free_slots_for_day(day, (b.interval for b in bookings))),
        )

    def list_my_bookings(self, *, actor: Actor) -> Sequence[Booking]:
        require_role(actor, ALL_ROLES, operation="view bookings")
        return self._rooms.list_bookings(requester_id=actor.actor_id, limit=DEFAULT_LIST_LIMIT)
