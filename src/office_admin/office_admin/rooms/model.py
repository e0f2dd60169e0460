from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import day_bounds
from ..core.enums import BookingStatus, Refusal


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval [start, end)."""

    start: datetime
    end: datetime

    @property
    def is_valid(self) -> bool:
        return self.end > self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        # Touching boundaries (one ends exactly when the other starts) do not overlap.
        return self.start < other.end and other.start < self.end

    def intersects_day(self, day: date) -> bool:
        day_start, day_end = day_bounds(day)
        return self.overlaps(TimeInterval(day_start, day_end))


@dataclass(frozen=True)
class MeetingRoom:
    room_id: int
    name: str
    capacity: int
    location: Optional[str]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Booking:
    booking_id: int
    room_id: int
    requester_id: int
    start_at: datetime
    end_at: datetime
    status: BookingStatus
    created_at: datetime
    closed_at: Optional[datetime] = None

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_at, self.end_at)


@dataclass(frozen=True)
class BookingAttempt:
    """Outcome of the check-and-insert under the room row lock.

    ``blocking`` is the booking that caused a BUSY or LIMIT refusal.
    """

    booking_id: Optional[int] = None
    refusal: Optional[Refusal] = None
    blocking: Optional[Booking] = None


@dataclass(frozen=True)
class RoomAvailability:
    """Free/busy view of one room for one day. Computed, never stored."""

    room: MeetingRoom
    day: date
    bookings: Sequence[Booking] = field(default_factory=tuple)
    free_slots: Sequence[TimeInterval] = field(default_factory=tuple)


def free_slots_for_day(day: date, busy: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Gaps within [day 00:00, next day 00:00) not covered by ``busy``."""
    day_start, day_end = day_bounds(day)
    slots: list[TimeInterval] = []
    cursor = day_start
    for interval in sorted(busy, key=lambda i: i.start):
        start = max(interval.start, day_start)
        end = min(interval.end, day_end)
        if end <= cursor:
            continue
        if start > cursor:
            slots.append(TimeInterval(cursor, start))
        cursor = max(cursor, end)
    if cursor < day_end:
        slots.append(TimeInterval(cursor, day_end))
    return slots
