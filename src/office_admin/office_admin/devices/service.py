from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..approval.gate import require_owner, require_role
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty
from ..core.constants import ADMIN_LIST_LIMIT, DEFAULT_LIST_LIMIT
from ..core.enums import ALL_ROLES, DEVICE_ADMIN_ROLES, DeviceRequestStatus, Refusal
from ..core.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from ..directory.model import Actor
from .model import Device, DeviceRequest
from .repository import DeviceRepository

logger = logging.getLogger(__name__)

S = DeviceRequestStatus

# Source states from which each transition is legal.
ALLOWED_FROM: Mapping[str, frozenset] = {
    "approve": frozenset({S.PENDING}),
    "reject": frozenset({S.PENDING}),
    "collect": frozenset({S.APPROVED}),
    "initiate_return": frozenset({S.COLLECTED}),
    "confirm_return": frozenset({S.RETURN_PENDING}),
    "cancel": frozenset({S.PENDING, S.APPROVED}),
    "admin_cancel": frozenset({S.PENDING}),
}


class DeviceCatalogService:
    """Use case: maintain the inventory of borrowable devices (device admin)."""

    def __init__(self, devices: DeviceRepository):
        self._devices = devices

    def _get(self, device_id: int) -> Device:
        device = self._devices.get_device(int(device_id))
        if not device:
            raise NotFoundError(f"Device {device_id} not found")
        return device

    def get_device(self, *, actor: Actor, device_id: int) -> Device:
        require_role(actor, ALL_ROLES, operation="view devices")
        return self._get(device_id)

    def list_devices(self, *, actor: Actor, only_available: bool = False) -> Sequence[Device]:
        require_role(actor, ALL_ROLES, operation="view devices")
        return self._devices.list_devices(only_available=only_available)

    def list_available_devices(self, *, actor: Actor) -> Sequence[Device]:
        return self.list_devices(actor=actor, only_available=True)

    def add_device(
        self,
        *,
        actor: Actor,
        name: str,
        device_type: str = "",
        description: str = "",
    ) -> Device:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="add devices")
        device_id = self._devices.create_device(
            name=require_non_empty(name, "Device name"),
            device_type=optional_text(device_type, "Device type"),
            description=optional_text(description, "Description"),
        )
        logger.info("Device %s added by actor=%s", device_id, actor.actor_id)
        return self._get(device_id)

    def update_device(
        self,
        *,
        actor: Actor,
        device_id: int,
        name: Optional[str] = None,
        device_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Device:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="update devices")
        current = self._get(device_id)

        # Omitted fields keep their current value.
        self._devices.update_device(
            device_id=current.device_id,
            name=require_non_empty(name, "Device name") if name is not None else current.name,
            device_type=optional_text(device_type, "Device type") if device_type is not None else current.device_type,
            description=optional_text(description, "Description") if description is not None else current.description,
        )
        return self._get(current.device_id)

    def retire_device(self, *, actor: Actor, device_id: int, now: datetime | None = None) -> None:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="retire devices")
        device = self._get(device_id)
        if not self._devices.retire_device(device_id=device.device_id, retired_at=now or now_local()):
            raise ConflictError(
                "Device has an active request and cannot be retired",
                conflicting_id=device.active_request_id,
            )
        logger.info("Device %s retired by actor=%s", device.device_id, actor.actor_id)


class DeviceRequestService:
    """Device borrow request state machine.

    pending -> approved | rejected | cancelled
    approved -> collected | cancelled
    collected -> return_pending -> returned

    Every transition is a compare-and-set on the stored status, so a
    concurrent transition on the same request can only make this one fail
    with InvalidTransitionError, never apply twice.
    """

    def __init__(self, devices: DeviceRepository):
        self._devices = devices

    # -------- helpers --------
    def _get(self, request_id: int) -> DeviceRequest:
        req = self._devices.get_request(int(request_id))
        if not req:
            raise NotFoundError(f"Device request {request_id} not found")
        return req

    def _transition(
        self,
        req: DeviceRequest,
        *,
        operation: str,
        to_status: DeviceRequestStatus,
        actor: Actor,
        changes: Optional[Mapping[str, object]] = None,
    ) -> DeviceRequest:
        allowed = ALLOWED_FROM[operation]
        if req.status not in allowed:
            raise InvalidTransitionError(
                f"Cannot {operation.replace('_', ' ')} a request in state '{req.status.value}'"
            )

        if not self._devices.transition_request(
            request_id=req.request_id,
            from_statuses=allowed,
            to_status=to_status,
            changes=changes,
        ):
            # Lost a race: the stored status moved on since we read it.
            current = self._get(req.request_id)
            raise InvalidTransitionError(
                f"Cannot {operation.replace('_', ' ')} a request in state '{current.status.value}'"
            )

        logger.info(
            "Device request %s: %s -> %s by actor=%s",
            req.request_id,
            req.status.value,
            to_status.value,
            actor.actor_id,
        )
        return self._get(req.request_id)

    # -------- self-service --------
    def create(self, *, actor: Actor, device_id: int, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, ALL_ROLES, operation="request devices")

        device = self._devices.get_device(int(device_id))
        if not device:
            raise NotFoundError(f"Device {device_id} not found")

        attempt = self._devices.create_request(
            device_id=device.device_id,
            requester_id=actor.actor_id,
            requested_at=now or now_local(),
        )
        if attempt.refusal == Refusal.GONE:
            raise NotFoundError(f"Device {device_id} not found")
        if attempt.refusal == Refusal.BUSY:
            active_id = attempt.active_request_id
            if active_id is None:
                active = self._devices.find_active_request(device.device_id)
                active_id = active.request_id if active else None
            logger.warning("Device %s already has an active request (actor=%s)", device.device_id, actor.actor_id)
            raise ConflictError("Device already has an active request", conflicting_id=active_id)
        request_id = attempt.request_id

        logger.info("Device request %s created for device %s by actor=%s", request_id, device.device_id, actor.actor_id)
        return self._get(request_id)

    def collect(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, ALL_ROLES, operation="collect devices")
        req = self._get(request_id)
        require_owner(actor, req.requester_id, operation="collect this device")
        return self._transition(
            req,
            operation="collect",
            to_status=S.COLLECTED,
            actor=actor,
            changes={"collected_at": now or now_local()},
        )

    def initiate_return(self, *, actor: Actor, request_id: int) -> DeviceRequest:
        require_role(actor, ALL_ROLES, operation="return devices")
        req = self._get(request_id)
        require_owner(actor, req.requester_id, operation="return this device")
        return self._transition(req, operation="initiate_return", to_status=S.RETURN_PENDING, actor=actor)

    def cancel(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, ALL_ROLES, operation="cancel device requests")
        req = self._get(request_id)
        require_owner(actor, req.requester_id, operation="cancel this request")
        return self._transition(
            req,
            operation="cancel",
            to_status=S.CANCELLED,
            actor=actor,
            changes={"closed_at": now or now_local()},
        )

    # -------- device admin --------
    def approve(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="approve device requests")
        req = self._get(request_id)
        return self._transition(
            req,
            operation="approve",
            to_status=S.APPROVED,
            actor=actor,
            changes={"decided_by": actor.actor_id, "decided_at": now or now_local()},
        )

    def reject(self, *, actor: Actor, request_id: int, reason: str, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="reject device requests")
        reason = require_non_empty(reason, "Reject reason")
        req = self._get(request_id)
        now = now or now_local()
        return self._transition(
            req,
            operation="reject",
            to_status=S.REJECTED,
            actor=actor,
            changes={"decided_by": actor.actor_id, "decided_at": now, "reject_reason": reason, "closed_at": now},
        )

    def confirm_return(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="confirm device returns")
        req = self._get(request_id)
        now = now or now_local()
        return self._transition(
            req,
            operation="confirm_return",
            to_status=S.RETURNED,
            actor=actor,
            changes={"returned_by": actor.actor_id, "returned_at": now, "closed_at": now},
        )

    def admin_cancel(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> DeviceRequest:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="cancel device requests for others")
        req = self._get(request_id)
        now = now or now_local()
        return self._transition(
            req,
            operation="admin_cancel",
            to_status=S.CANCELLED,
            actor=actor,
            changes={"decided_by": actor.actor_id, "decided_at": now, "closed_at": now},
        )

    # -------- read projections --------
    def get_request(self, *, actor: Actor, request_id: int) -> DeviceRequest:
        require_role(actor, ALL_ROLES, operation="view device requests")
        req = self._get(request_id)
        if req.requester_id != actor.actor_id:
            require_role(actor, DEVICE_ADMIN_ROLES, operation="view other employees' device requests")
        return req

    def list_my_requests(self, *, actor: Actor) -> Sequence[DeviceRequest]:
        require_role(actor, ALL_ROLES, operation="view device requests")
        return self._devices.list_requests(requester_id=actor.actor_id, limit=DEFAULT_LIST_LIMIT)

    def list_pending(self, *, actor: Actor) -> Sequence[DeviceRequest]:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="view pending device requests")
        return self._devices.list_requests(status=S.PENDING, limit=ADMIN_LIST_LIMIT)

    def list_return_pending(self, *, actor: Actor) -> Sequence[DeviceRequest]:
        require_role(actor, DEVICE_ADMIN_ROLES, operation="view pending device returns")
        return self._devices.list_requests(status=S.RETURN_PENDING, limit=ADMIN_LIST_LIMIT)
