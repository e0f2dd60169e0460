from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..web.serializers import to_json
from ..web.session import actor_required, json_body, require_field


def register(app: Flask, container: Container) -> None:
    login_required = actor_required(container.directory)

    @app.route("/leaves", methods=["POST"], endpoint="apply_leave")
    @login_required
    def apply_leave(*, actor):
        data = json_body()
        leave = container.leave_service.apply(
            actor=actor,
            leave_type=str(require_field(data, "leave_type")),
            start_date=parse_iso_date(require_field(data, "start_date")),
            end_date=parse_iso_date(require_field(data, "end_date")),
            reason=data.get("reason") or "",
        )
        return jsonify(to_json(leave)), 201

    @app.route("/leaves", methods=["GET"], endpoint="my_leaves")
    @login_required
    def my_leaves(*, actor):
        return jsonify(to_json(list(container.leave_service.list_my_leaves(actor=actor))))

    @app.route("/leaves/pending", methods=["GET"], endpoint="pending_leaves")
    @login_required
    def pending_leaves(*, actor):
        return jsonify(to_json(list(container.leave_service.list_pending_for_supervisor(actor=actor))))

    @app.route("/leaves/<int:request_id>/approve", methods=["POST"], endpoint="approve_leave")
    @login_required
    def approve_leave(request_id: int, *, actor):
        return jsonify(to_json(container.leave_service.approve(actor=actor, request_id=request_id)))

    @app.route("/leaves/<int:request_id>/reject", methods=["POST"], endpoint="reject_leave")
    @login_required
    def reject_leave(request_id: int, *, actor):
        data = json_body()
        leave = container.leave_service.reject(actor=actor, request_id=request_id, reason=data.get("reason") or "")
        return jsonify(to_json(leave))

    @app.route("/leaves/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_leave")
    @login_required
    def cancel_leave(request_id: int, *, actor):
        return jsonify(to_json(container.leave_service.cancel(actor=actor, request_id=request_id)))
