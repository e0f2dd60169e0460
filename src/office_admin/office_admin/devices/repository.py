from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Mapping, Optional, Protocol, Sequence

from ..core.enums import DeviceRequestStatus
from .model import Device, DeviceRequest, RequestAttempt


class DeviceRepository(Protocol):
    """Storage for devices and their borrow requests.

    Note: every method is one transaction. ``create_request`` and
    ``transition_request`` perform their check and their write atomically.
    """

    # Catalog
    def get_device(self, device_id: int) -> Optional[Device]:
        raise NotImplementedError

    def list_devices(self, *, only_available: bool = False) -> Sequence[Device]:
        raise NotImplementedError

    def create_device(self, *, name: str, device_type: Optional[str], description: Optional[str]) -> int:
        raise NotImplementedError

    def update_device(
        self,
        *,
        device_id: int,
        name: str,
        device_type: Optional[str],
        description: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def retire_device(self, *, device_id: int, retired_at: datetime) -> bool:
        """Soft-delete; returns False if the device has an active request."""

        raise NotImplementedError

    # Requests
    def create_request(self, *, device_id: int, requester_id: int, requested_at: datetime) -> RequestAttempt:
        """Insert a pending request unless the device already has an active one.

        Refused with GONE when the device is missing or retired, BUSY when
        another active request exists.
        """

        raise NotImplementedError

    def get_request(self, request_id: int) -> Optional[DeviceRequest]:
        raise NotImplementedError

    def find_active_request(self, device_id: int) -> Optional[DeviceRequest]:
        raise NotImplementedError

    def transition_request(
        self,
        *,
        request_id: int,
        from_statuses: AbstractSet[DeviceRequestStatus],
        to_status: DeviceRequestStatus,
        changes: Optional[Mapping[str, object]] = None,
    ) -> bool:
        """Compare-and-set the status; False when the current status is not in ``from_statuses``."""

        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[DeviceRequestStatus] = None,
        requester_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[DeviceRequest]:
        raise NotImplementedError
