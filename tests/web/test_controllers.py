from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest
from flask import Flask

from office_admin.core.enums import BookingStatus, DeviceRequestStatus, LeaveStatus, LeaveType, Role
from office_admin.core.exceptions import BookingLimitError, ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError
from office_admin.devices.controller import register as register_devices
from office_admin.devices.model import DeviceRequest
from office_admin.devices.service import DeviceCatalogService
from office_admin.directory.model import Actor
from office_admin.leaves.controller import register as register_leaves
from office_admin.leaves.model import LeaveRequest
from office_admin.rooms.controller import register as register_rooms
from office_admin.rooms.model import Booking, MeetingRoom, RoomAvailability, TimeInterval
from office_admin.web.errors import register as register_error_handlers

ALICE = Actor(actor_id=4, full_name="Alice", role=Role.EMPLOYEE, supervisor_id=3)
DEVICE_ADMIN = Actor(actor_id=2, full_name="Device Admin", role=Role.DEVICE_ADMIN)
FORMER = Actor(actor_id=8, full_name="Former", role=Role.EMPLOYEE, active=False)
REQUESTED_AT = datetime(2026, 3, 2, 9, 0, 0)
HELD_ROOM = 2


def raising(exc):
    def fn(*_args, **_kwargs):
        raise exc

    return fn


class FakeDirectory:
    def resolve(self, actor_id):
        return {a.actor_id: a for a in (ALICE, DEVICE_ADMIN, FORMER)}.get(int(actor_id))

    def list_subordinate_ids(self, supervisor_id):
        return []


def pending_request(**_kwargs):
    return DeviceRequest(
        request_id=7,
        device_id=10,
        requester_id=ALICE.actor_id,
        status=DeviceRequestStatus.PENDING,
        requested_at=REQUESTED_AT,
    )


def confirmed_booking(*, actor, room_id, start_at, end_at):
    if room_id == HELD_ROOM:
        raise BookingLimitError(
            "You already hold an active booking; complete or cancel it first",
            conflicting_id=3,
            details={"booking_id": 3, "start_at": datetime(2024, 1, 10, 9), "end_at": datetime(2024, 1, 10, 10)},
        )
    return Booking(
        booking_id=3,
        room_id=room_id,
        requester_id=actor.actor_id,
        start_at=start_at,
        end_at=end_at,
        status=BookingStatus.CONFIRMED,
        created_at=REQUESTED_AT,
    )


def availability(*, actor, room_id, day):
    room = MeetingRoom(room_id=room_id, name="Orion", capacity=8, location=None)
    busy = confirmed_booking(actor=ALICE, room_id=room_id, start_at=datetime(2024, 1, 10, 9), end_at=datetime(2024, 1, 10, 10))
    return RoomAvailability(
        room=room,
        day=day,
        bookings=(busy,),
        free_slots=(
            TimeInterval(datetime(2024, 1, 10), datetime(2024, 1, 10, 9)),
            TimeInterval(datetime(2024, 1, 10, 10), datetime(2024, 1, 11)),
        ),
    )


def applied_leave(*, actor, leave_type, start_date, end_date, reason):
    return LeaveRequest(
        request_id=11,
        requester_id=actor.actor_id,
        leave_type=LeaveType(leave_type),
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        status=LeaveStatus.PENDING,
        created_at=REQUESTED_AT,
    )


@pytest.fixture()
def client():
    container = SimpleNamespace(
        directory=FakeDirectory(),
        device_catalog_service=SimpleNamespace(
            list_devices=lambda **_kw: [],
            get_device=raising(NotFoundError("Device 99 not found")),
            add_device=DeviceCatalogService(SimpleNamespace(create_device=raising(AssertionError("validated first")))).add_device,
        ),
        device_request_service=SimpleNamespace(
            create=pending_request,
            approve=raising(ForbiddenError("Not allowed to approve device requests")),
            collect=raising(InvalidTransitionError("Cannot collect a request in state 'pending'")),
            cancel=pending_request,
        ),
        meeting_room_service=SimpleNamespace(list_rooms=lambda **_kw: []),
        booking_service=SimpleNamespace(
            book=confirmed_booking,
            availability=availability,
            cancel=raising(ConflictError("Resource is busy, please retry")),
        ),
        leave_service=SimpleNamespace(
            apply=applied_leave,
            approve=raising(ForbiddenError("Only the direct supervisor may approve leave")),
        ),
    )

    app = Flask(__name__)
    app.secret_key = "test-secret"
    register_devices(app, container)
    register_rooms(app, container)
    register_leaves(app, container)
    register_error_handlers(app)
    return app.test_client()


def login(client, user_id=ALICE.actor_id):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id


def test_missing_session_is_unauthenticated(client):
    resp = client.get("/devices")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthenticated"


def test_unknown_session_user_is_unauthenticated(client):
    login(client, user_id=999)
    assert client.get("/devices").status_code == 401


def test_deactivated_session_user_is_forbidden(client):
    login(client, user_id=FORMER.actor_id)
    resp = client.get("/devices")

    assert resp.status_code == 403
    assert resp.get_json()["status"] == "forbidden"


@pytest.mark.parametrize("payload", [{"name": 123}, {"name": ["Laptop"]}, {"name": "Laptop", "description": 5}])
def test_add_device_with_non_text_fields_is_bad_request(client, payload):
    login(client, user_id=DEVICE_ADMIN.actor_id)
    resp = client.post("/devices", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_booking_limit_is_conflict_with_details(client):
    login(client)
    resp = client.post(
        "/bookings",
        json={"room_id": HELD_ROOM, "start_at": "2024-01-10 14:00", "end_at": "2024-01-10 15:00"},
    )

    assert resp.status_code == 409
    body = resp.get_json()
    assert body["error"] == "booking_limit_exceeded"
    assert body["status"] == "conflict"
    assert body["conflicting_id"] == 3
    assert body["details"] == {"booking_id": 3, "start_at": "2024-01-10 09:00:00", "end_at": "2024-01-10 10:00:00"}


def test_create_device_request_returns_created_entity(client):
    login(client)
    resp = client.post("/device-requests", json={"device_id": 10})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "pending"
    assert body["is_active"] is True
    assert body["requested_at"] == "2026-03-02 09:00:00"


def test_create_device_request_requires_device_id(client):
    login(client)
    resp = client.post("/device-requests", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


@pytest.mark.parametrize(
    "method, url, status, kind, label",
    [
        ("get", "/devices/99", 404, "not_found", "not-found"),
        ("post", "/device-requests/7/approve", 403, "forbidden", "forbidden"),
        ("post", "/device-requests/7/collect", 400, "invalid_transition", "bad-request"),
        ("post", "/bookings/3/cancel", 409, "conflict", "conflict"),
        ("post", "/leaves/11/approve", 403, "forbidden", "forbidden"),
    ],
)
def test_domain_errors_map_to_status(client, method, url, status, kind, label):
    login(client)
    resp = getattr(client, method)(url)

    assert resp.status_code == status
    body = resp.get_json()
    assert body["error"] == kind
    assert body["status"] == label
    assert body["message"]


def test_book_room_parses_timestamps(client):
    login(client)
    resp = client.post(
        "/bookings",
        json={"room_id": 1, "start_at": "2024-01-10T09:00", "end_at": "2024-01-10 10:00"},
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["start_at"] == "2024-01-10 09:00:00"
    assert body["end_at"] == "2024-01-10 10:00:00"
    assert body["status"] == "confirmed"


def test_book_room_with_bad_timestamp_is_bad_request(client):
    login(client)
    resp = client.post("/bookings", json={"room_id": 1, "start_at": "tomorrow", "end_at": "2024-01-10 10:00"})

    assert resp.status_code == 400
    assert resp.get_json()["status"] == "bad-request"


def test_room_availability_for_date(client):
    login(client)
    resp = client.get("/meeting-rooms/1/availability?date=2024-01-10")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["day"] == "2024-01-10"
    assert [b["booking_id"] for b in body["bookings"]] == [3]
    assert body["free_slots"][1]["start"] == "2024-01-10 10:00:00"
    assert body["free_slots"][1]["end"] == "2024-01-11 00:00:00"


def test_apply_leave(client):
    login(client)
    resp = client.post(
        "/leaves",
        json={"leave_type": "sick", "start_date": "2026-04-06", "end_date": "2026-04-07", "reason": "Flu"},
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["leave_type"] == "sick"
    assert body["start_date"] == "2026-04-06"
    assert body["days"] == 2
    assert body["status"] == "pending"


def test_unknown_route_is_json_not_found(client):
    login(client)
    resp = client.get("/nowhere")

    assert resp.status_code == 404
    assert resp.get_json()["status"] == "not-found"
