from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles supplied by the actor directory."""

    SUPER_ADMIN = "super_admin"
    HR = "hr"
    FINANCE = "finance"
    DEVICE_ADMIN = "device_admin"
    SUPERVISOR = "supervisor"
    EMPLOYEE = "employee"


ALL_ROLES = frozenset(Role)
DEVICE_ADMIN_ROLES = frozenset({Role.DEVICE_ADMIN, Role.SUPER_ADMIN})
ROOM_ADMIN_ROLES = frozenset({Role.SUPER_ADMIN})
LEAVE_OVERRIDE_ROLES = frozenset({Role.SUPER_ADMIN})


class DeviceRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COLLECTED = "collected"
    RETURN_PENDING = "return_pending"
    RETURNED = "returned"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_DEVICE_REQUEST_STATUSES


ACTIVE_DEVICE_REQUEST_STATUSES = frozenset(
    {
        DeviceRequestStatus.PENDING,
        DeviceRequestStatus.APPROVED,
        DeviceRequestStatus.COLLECTED,
        DeviceRequestStatus.RETURN_PENDING,
    }
)


class DeviceStatus(str, Enum):
    """Availability of a device, derived from its active request (never stored)."""

    AVAILABLE = "available"
    UNDER_REQUEST = "under_request"
    BORROWED = "borrowed"

    @classmethod
    def from_active_request(cls, status: DeviceRequestStatus | None) -> "DeviceStatus":
        if status in (DeviceRequestStatus.PENDING, DeviceRequestStatus.APPROVED):
            return cls.UNDER_REQUEST
        if status in (DeviceRequestStatus.COLLECTED, DeviceRequestStatus.RETURN_PENDING):
            return cls.BORROWED
        return cls.AVAILABLE


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    MARRIAGE = "marriage"
    MATERNITY = "maternity"
    BEREAVEMENT = "bereavement"


class Refusal(str, Enum):
    """Why an atomic check-and-insert did not insert."""

    GONE = "gone"  # target device/room missing or retired
    BUSY = "busy"  # active request on the device / overlapping booking
    LIMIT = "limit"  # requester already holds an active booking
