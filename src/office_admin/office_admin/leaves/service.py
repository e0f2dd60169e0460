from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..approval.gate import require_decider, require_role
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty
from ..core.constants import ADMIN_LIST_LIMIT, DEFAULT_LIST_LIMIT
from ..core.enums import ALL_ROLES, LEAVE_OVERRIDE_ROLES, LeaveStatus, LeaveType, Role
from ..core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from ..directory.model import Actor
from ..directory.repository import ActorDirectory
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveService:
    """Leave workflow: pending -> approved | rejected | cancelled.

    Decisions go through the approval gate's supervisor relationship check.
    """

    def __init__(self, leaves: LeaveRepository, directory: ActorDirectory):
        self._leaves = leaves
        self._directory = directory

    def _get(self, request_id: int) -> LeaveRequest:
        leave = self._leaves.get_leave(int(request_id))
        if not leave:
            raise NotFoundError(f"Leave request {request_id} not found")
        return leave

    def _subject_of(self, leave: LeaveRequest) -> Actor:
        subject = self._directory.resolve(leave.requester_id)
        if not subject:
            raise NotFoundError(f"Employee {leave.requester_id} not found")
        return subject

    def _decide(
        self,
        leave: LeaveRequest,
        *,
        actor: Actor,
        status: LeaveStatus,
        verb: str,
        now: datetime | None,
        reject_reason: Optional[str] = None,
    ) -> LeaveRequest:
        if leave.status != LeaveStatus.PENDING:
            raise InvalidTransitionError(f"Cannot {verb} a leave request in state '{leave.status.value}'")

        if not self._leaves.decide_leave(
            request_id=leave.request_id,
            status=status,
            decided_by=actor.actor_id,
            decided_at=now or now_local(),
            reject_reason=reject_reason,
        ):
            current = self._get(leave.request_id)
            raise InvalidTransitionError(f"Cannot {verb} a leave request in state '{current.status.value}'")

        logger.info("Leave request %s -> %s by actor=%s", leave.request_id, status.value, actor.actor_id)
        return self._get(leave.request_id)

    def apply(
        self,
        *,
        actor: Actor,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str = "",
        now: datetime | None = None,
    ) -> LeaveRequest:
        require_role(actor, ALL_ROLES, operation="apply for leave")

        try:
            kind = LeaveType(leave_type)
        except ValueError:
            raise ValidationError(f"Unknown leave type {leave_type!r}")

        if end_date < start_date:
            raise ValidationError("End date must be on or after the start date")

        request_id = self._leaves.create_leave(
            requester_id=actor.actor_id,
            leave_type=kind,
            start_date=start_date,
            end_date=end_date,
            reason=optional_text(reason, "Reason"),
            created_at=now or now_local(),
        )
        logger.info("Leave request %s submitted by actor=%s", request_id, actor.actor_id)
        return self._get(request_id)

    def approve(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> LeaveRequest:
        leave = self._get(request_id)
        require_decider(actor, self._subject_of(leave), override_roles=LEAVE_OVERRIDE_ROLES, operation="approve leave")
        return self._decide(leave, actor=actor, status=LeaveStatus.APPROVED, verb="approve", now=now)

    def reject(self, *, actor: Actor, request_id: int, reason: str, now: datetime | None = None) -> LeaveRequest:
        leave = self._get(request_id)
        require_decider(actor, self._subject_of(leave), override_roles=LEAVE_OVERRIDE_ROLES, operation="reject leave")
        reason = require_non_empty(reason, "Reject reason")
        return self._decide(
            leave,
            actor=actor,
            status=LeaveStatus.REJECTED,
            verb="reject",
            now=now,
            reject_reason=reason,
        )

    def cancel(self, *, actor: Actor, request_id: int, now: datetime | None = None) -> LeaveRequest:
        """The requester, or whoever may decide on the request, can withdraw it while pending."""
        require_role(actor, ALL_ROLES, operation="cancel leave")
        leave = self._get(request_id)
        if leave.requester_id != actor.actor_id:
            require_decider(actor, self._subject_of(leave), override_roles=LEAVE_OVERRIDE_ROLES, operation="cancel leave")
        return self._decide(leave, actor=actor, status=LeaveStatus.CANCELLED, verb="cancel", now=now)

    def list_my_leaves(self, *, actor: Actor) -> Sequence[LeaveRequest]:
        require_role(actor, ALL_ROLES, operation="view leave requests")
        return self._leaves.list_leaves(requester_ids=[actor.actor_id], limit=DEFAULT_LIST_LIMIT)

    def list_pending_for_supervisor(self, *, actor: Actor) -> Sequence[LeaveRequest]:
        require_role(actor, {Role.SUPERVISOR, *LEAVE_OVERRIDE_ROLES}, operation="view pending leave")
        if actor.role in LEAVE_OVERRIDE_ROLES:
            return [
                leave
                for leave in self._leaves.list_leaves(status=LeaveStatus.PENDING, limit=ADMIN_LIST_LIMIT)
                if leave.requester_id != actor.actor_id
            ]
        subordinates = self._directory.list_subordinate_ids(actor.actor_id)
        return self._leaves.list_leaves(status=LeaveStatus.PENDING, requester_ids=subordinates, limit=ADMIN_LIST_LIMIT)
