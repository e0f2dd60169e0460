from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, parse_iso_date, parse_iso_datetime
from ..container import Container
from ..web.serializers import to_json
from ..web.session import actor_required, int_field, json_body, require_field


def register(app: Flask, container: Container) -> None:
    login_required = actor_required(container.directory)

    @app.route("/meeting-rooms", methods=["GET"], endpoint="list_rooms")
    @login_required
    def list_rooms(*, actor):
        return jsonify(to_json(list(container.meeting_room_service.list_rooms(actor=actor))))

    @app.route("/meeting-rooms/<int:room_id>", methods=["GET"], endpoint="get_room")
    @login_required
    def get_room(room_id: int, *, actor):
        return jsonify(to_json(container.meeting_room_service.get_room(actor=actor, room_id=room_id)))

    @app.route("/meeting-rooms", methods=["POST"], endpoint="add_room")
    @login_required
    def add_room(*, actor):
        data = json_body()
        room = container.meeting_room_service.add_room(
            actor=actor,
            name=require_field(data, "name"),
            capacity=int_field(data, "capacity"),
            location=data.get("location") or "",
        )
        return jsonify(to_json(room)), 201

    @app.route("/meeting-rooms/<int:room_id>", methods=["PUT", "PATCH"], endpoint="update_room")
    @login_required
    def update_room(room_id: int, *, actor):
        data = json_body()
        room = container.meeting_room_service.update_room(
            actor=actor,
            room_id=room_id,
            name=data.get("name"),
            capacity=int_field(data, "capacity") if data.get("capacity") is not None else None,
            location=data.get("location"),
        )
        return jsonify(to_json(room))

    @app.route("/meeting-rooms/<int:room_id>", methods=["DELETE"], endpoint="retire_room")
    @login_required
    def retire_room(room_id: int, *, actor):
        container.meeting_room_service.retire_room(actor=actor, room_id=room_id)
        return "", 204

    @app.route("/meeting-rooms/<int:room_id>/availability", methods=["GET"], endpoint="room_availability")
    @login_required
    def room_availability(room_id: int, *, actor):
        raw = request.args.get("date")
        day = parse_iso_date(raw) if raw else now_local().date()
        return jsonify(to_json(container.booking_service.availability(actor=actor, room_id=room_id, day=day)))

    @app.route("/bookings", methods=["POST"], endpoint="book_room")
    @login_required
    def book_room(*, actor):
        data = json_body()
        booking = container.booking_service.book(
            actor=actor,
            room_id=int_field(data, "room_id"),
            start_at=parse_iso_datetime(require_field(data, "start_at")),
            end_at=parse_iso_datetime(require_field(data, "end_at")),
        )
        return jsonify(to_json(booking)), 201

    @app.route("/bookings", methods=["GET"], endpoint="my_bookings")
    @login_required
    def my_bookings(*, actor):
        return jsonify(to_json(list(container.booking_service.list_my_bookings(actor=actor))))

    @app.route("/bookings/<int:booking_id>/complete", methods=["POST"], endpoint="complete_booking")
    @login_required
    def complete_booking(booking_id: int, *, actor):
        return jsonify(to_json(container.booking_service.complete(actor=actor, booking_id=booking_id)))

    @app.route("/bookings/<int:booking_id>/cancel", methods=["POST"], endpoint="cancel_booking")
    @login_required
    def cancel_booking(booking_id: int, *, actor):
        return jsonify(to_json(container.booking_service.cancel(actor=actor, booking_id=booking_id)))
