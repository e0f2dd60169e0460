from dataclasses import replace

import pytest

from office_admin.approval.gate import is_allowed, may_decide_for, require_decider, require_owner, require_role
from office_admin.core.enums import ALL_ROLES, DEVICE_ADMIN_ROLES, LEAVE_OVERRIDE_ROLES, ROOM_ADMIN_ROLES, Role
from office_admin.core.exceptions import ForbiddenError
from office_admin.directory.model import Actor

SUPER_ADMIN = Actor(actor_id=1, full_name="Root", role=Role.SUPER_ADMIN)
DEVICE_ADMIN = Actor(actor_id=2, full_name="Dev", role=Role.DEVICE_ADMIN, supervisor_id=1)
LEAD = Actor(actor_id=3, full_name="Lead", role=Role.SUPERVISOR, supervisor_id=1)
OTHER_LEAD = Actor(actor_id=6, full_name="Other Lead", role=Role.SUPERVISOR, supervisor_id=1)
ALICE = Actor(actor_id=4, full_name="Alice", role=Role.EMPLOYEE, supervisor_id=3)


@pytest.mark.parametrize(
    "actor, roles, expected",
    [
        (DEVICE_ADMIN, DEVICE_ADMIN_ROLES, True),
        (SUPER_ADMIN, DEVICE_ADMIN_ROLES, True),
        (ALICE, DEVICE_ADMIN_ROLES, False),
        (LEAD, DEVICE_ADMIN_ROLES, False),
        (DEVICE_ADMIN, ROOM_ADMIN_ROLES, False),
        (ALICE, ALL_ROLES, True),
        (None, ALL_ROLES, False),
    ],
)
def test_is_allowed_by_role(actor, roles, expected):
    assert is_allowed(actor, roles) is expected


def test_inactive_actor_is_never_allowed():
    assert not is_allowed(replace(SUPER_ADMIN, active=False), ALL_ROLES)


def test_direct_supervisor_may_decide():
    assert may_decide_for(LEAD, ALICE, override_roles=LEAVE_OVERRIDE_ROLES)


def test_other_supervisor_may_not_decide():
    assert not may_decide_for(OTHER_LEAD, ALICE, override_roles=LEAVE_OVERRIDE_ROLES)


def test_supervisor_link_without_supervisor_role_is_not_enough():
    # Alice's manager is recorded, but the manager's role was changed to employee.
    demoted = replace(LEAD, role=Role.EMPLOYEE)
    assert not may_decide_for(demoted, ALICE, override_roles=LEAVE_OVERRIDE_ROLES)


def test_override_role_may_decide_for_anyone_but_themselves():
    assert may_decide_for(SUPER_ADMIN, ALICE, override_roles=LEAVE_OVERRIDE_ROLES)
    assert may_decide_for(SUPER_ADMIN, LEAD, override_roles=LEAVE_OVERRIDE_ROLES)
    assert not may_decide_for(SUPER_ADMIN, SUPER_ADMIN, override_roles=LEAVE_OVERRIDE_ROLES)


def test_require_helpers_raise_forbidden():
    assert require_role(DEVICE_ADMIN, DEVICE_ADMIN_ROLES, operation="approve") is DEVICE_ADMIN
    with pytest.raises(ForbiddenError):
        require_role(ALICE, DEVICE_ADMIN_ROLES, operation="approve")

    require_owner(ALICE, 4, operation="collect")
    with pytest.raises(ForbiddenError):
        require_owner(LEAD, 4, operation="collect")

    assert require_decider(LEAD, ALICE, override_roles=LEAVE_OVERRIDE_ROLES, operation="approve leave") is LEAD
    with pytest.raises(ForbiddenError):
        require_decider(ALICE, ALICE, override_roles=LEAVE_OVERRIDE_ROLES, operation="approve leave")
