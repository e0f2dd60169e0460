from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from office_admin.core.enums import LeaveStatus, LeaveType, Role
from office_admin.core.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from office_admin.directory.model import Actor
from office_admin.leaves.model import LeaveRequest
from office_admin.leaves.service import LeaveService

NOW = datetime(2026, 4, 1, 8, 0, 0)

SUPER_ADMIN = Actor(actor_id=1, full_name="Root", role=Role.SUPER_ADMIN)
LEAD = Actor(actor_id=3, full_name="Lead", role=Role.SUPERVISOR, supervisor_id=1)
OTHER_LEAD = Actor(actor_id=6, full_name="Other Lead", role=Role.SUPERVISOR, supervisor_id=1)
ALICE = Actor(actor_id=4, full_name="Alice", role=Role.EMPLOYEE, supervisor_id=3)
BOB = Actor(actor_id=5, full_name="Bob", role=Role.EMPLOYEE, supervisor_id=6)


class FakeDirectory:
    def __init__(self, *actors):
        self._actors = {a.actor_id: a for a in actors}

    def resolve(self, actor_id):
        return self._actors.get(int(actor_id))

    def list_subordinate_ids(self, supervisor_id):
        return [a.actor_id for a in self._actors.values() if a.supervisor_id == supervisor_id]


class FakeLeavesRepo:
    def __init__(self):
        self._next_id = 1
        self.leaves: dict[int, LeaveRequest] = {}

    def create_leave(self, *, requester_id, leave_type, start_date, end_date, reason, created_at):
        rid = self._next_id
        self._next_id += 1
        self.leaves[rid] = LeaveRequest(
            request_id=rid,
            requester_id=requester_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=created_at,
        )
        return rid

    def get_leave(self, request_id):
        return self.leaves.get(int(request_id))

    def decide_leave(self, *, request_id, status, decided_by, decided_at, reject_reason=None):
        leave = self.leaves.get(request_id)
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self.leaves[request_id] = replace(
            leave,
            status=status,
            decided_by=decided_by,
            decided_at=decided_at,
            reject_reason=reject_reason,
        )
        return True

    def list_leaves(self, *, status=None, requester_ids=None, limit=200):
        out = [
            leave
            for leave in self.leaves.values()
            if (status is None or leave.status == status)
            and (requester_ids is None or leave.requester_id in requester_ids)
        ]
        return out[:limit]


def _service():
    repo = FakeLeavesRepo()
    return LeaveService(repo, FakeDirectory(SUPER_ADMIN, LEAD, OTHER_LEAD, ALICE, BOB)), repo


def _apply(svc, actor=ALICE, leave_type="annual"):
    return svc.apply(
        actor=actor,
        leave_type=leave_type,
        start_date=date(2026, 4, 6),
        end_date=date(2026, 4, 8),
        reason="Family trip",
        now=NOW,
    )


def test_apply_creates_pending_leave():
    svc, _ = _service()
    leave = _apply(svc)

    assert leave.status == LeaveStatus.PENDING
    assert leave.leave_type == LeaveType.ANNUAL
    assert leave.days == 3


def test_apply_rejects_unknown_type_and_reversed_dates():
    svc, _ = _service()
    with pytest.raises(ValidationError):
        _apply(svc, leave_type="sabbatical")
    with pytest.raises(ValidationError):
        svc.apply(actor=ALICE, leave_type="sick", start_date=date(2026, 4, 8), end_date=date(2026, 4, 6), now=NOW)


def test_direct_supervisor_approves():
    svc, _ = _service()
    leave = _apply(svc)

    approved = svc.approve(actor=LEAD, request_id=leave.request_id, now=NOW)

    assert approved.status == LeaveStatus.APPROVED
    assert approved.decided_by == LEAD.actor_id
    assert approved.decided_at == NOW


def test_other_supervisor_cannot_approve():
    svc, repo = _service()
    leave = _apply(svc)

    with pytest.raises(ForbiddenError):
        svc.approve(actor=OTHER_LEAD, request_id=leave.request_id, now=NOW)
    assert repo.get_leave(leave.request_id).status == LeaveStatus.PENDING


def test_requester_cannot_approve_own_leave():
    svc, _ = _service()
    leave = _apply(svc, actor=LEAD)

    with pytest.raises(ForbiddenError):
        svc.approve(actor=LEAD, request_id=leave.request_id, now=NOW)
    assert svc.approve(actor=SUPER_ADMIN, request_id=leave.request_id, now=NOW).status == LeaveStatus.APPROVED


def test_reject_records_reason_and_is_terminal():
    svc, _ = _service()
    leave = _apply(svc)

    with pytest.raises(ValidationError):
        svc.reject(actor=LEAD, request_id=leave.request_id, reason="", now=NOW)

    rejected = svc.reject(actor=LEAD, request_id=leave.request_id, reason="Release week", now=NOW)
    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.reject_reason == "Release week"

    with pytest.raises(InvalidTransitionError):
        svc.approve(actor=LEAD, request_id=leave.request_id, now=NOW)


def test_cancel_by_requester_or_decider_while_pending():
    svc, _ = _service()

    mine = _apply(svc)
    assert svc.cancel(actor=ALICE, request_id=mine.request_id, now=NOW).status == LeaveStatus.CANCELLED

    again = _apply(svc)
    assert svc.cancel(actor=LEAD, request_id=again.request_id, now=NOW).status == LeaveStatus.CANCELLED

    third = _apply(svc)
    with pytest.raises(ForbiddenError):
        svc.cancel(actor=BOB, request_id=third.request_id, now=NOW)

    svc.approve(actor=LEAD, request_id=third.request_id, now=NOW)
    with pytest.raises(InvalidTransitionError):
        svc.cancel(actor=ALICE, request_id=third.request_id, now=NOW)


def test_unknown_leave_is_not_found():
    svc, _ = _service()
    with pytest.raises(NotFoundError):
        svc.approve(actor=LEAD, request_id=99, now=NOW)


def test_pending_queue_for_supervisor_only_shows_direct_reports():
    svc, _ = _service()
    alice_leave = _apply(svc, actor=ALICE)
    bob_leave = _apply(svc, actor=BOB)

    assert [l.request_id for l in svc.list_pending_for_supervisor(actor=LEAD)] == [alice_leave.request_id]
    assert [l.request_id for l in svc.list_pending_for_supervisor(actor=OTHER_LEAD)] == [bob_leave.request_id]
    assert {l.request_id for l in svc.list_pending_for_supervisor(actor=SUPER_ADMIN)} == {
        alice_leave.request_id,
        bob_leave.request_id,
    }
    with pytest.raises(ForbiddenError):
        svc.list_pending_for_supervisor(actor=ALICE)


def test_list_my_leaves():
    svc, _ = _service()
    mine = _apply(svc, actor=ALICE)
    _apply(svc, actor=BOB)

    assert [l.request_id for l in svc.list_my_leaves(actor=ALICE)] == [mine.request_id]


def test_non_text_reasons_are_validation_errors():
    svc, _ = _service()
    with pytest.raises(ValidationError):
        svc.apply(
            actor=ALICE,
            leave_type="annual",
            start_date=date(2026, 4, 6),
            end_date=date(2026, 4, 6),
            reason=["trip"],
            now=NOW,
        )

    leave = _apply(svc)
    with pytest.raises(ValidationError):
        svc.reject(actor=LEAD, request_id=leave.request_id, reason=5, now=NOW)


def test_inactive_employee_cannot_list_own_leaves():
    svc, _ = _service()
    _apply(svc)

    with pytest.raises(ForbiddenError):
        svc.list_my_leaves(actor=replace(ALICE, active=False))
