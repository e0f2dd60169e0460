from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import DeviceRequestStatus, DeviceStatus, Refusal


@dataclass(frozen=True)
class Device:
    """A borrowable device.

    ``status`` is derived from the device's active request when the row is read.
    """

    device_id: int
    name: str
    device_type: Optional[str]
    description: Optional[str]
    status: DeviceStatus
    created_at: Optional[datetime] = None
    active_request_id: Optional[int] = None


@dataclass(frozen=True)
class DeviceRequest:
    request_id: int
    device_id: int
    requester_id: int
    status: DeviceRequestStatus
    requested_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    reject_reason: Optional[str] = None
    collected_at: Optional[datetime] = None
    returned_by: Optional[int] = None
    returned_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class RequestAttempt:
    """Outcome of creating a request under the device row lock."""

    request_id: Optional[int] = None
    refusal: Optional[Refusal] = None
    active_request_id: Optional[int] = None
