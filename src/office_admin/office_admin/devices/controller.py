from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..web.serializers import to_json
from ..web.session import actor_required, int_field, json_body, require_field


def register(app: Flask, container: Container) -> None:
    login_required = actor_required(container.directory)

    # Device catalog
    @app.route("/devices", methods=["GET"], endpoint="list_devices")
    @login_required
    def list_devices(*, actor):
        only_available = request.args.get("available", "").lower() in ("1", "true", "yes")
        devices = container.device_catalog_service.list_devices(actor=actor, only_available=only_available)
        return jsonify(to_json(list(devices)))

    @app.route("/devices/available", methods=["GET"], endpoint="list_available_devices")
    @login_required
    def list_available_devices(*, actor):
        devices = container.device_catalog_service.list_available_devices(actor=actor)
        return jsonify(to_json(list(devices)))

    @app.route("/devices/<int:device_id>", methods=["GET"], endpoint="get_device")
    @login_required
    def get_device(device_id: int, *, actor):
        return jsonify(to_json(container.device_catalog_service.get_device(actor=actor, device_id=device_id)))

    @app.route("/devices", methods=["POST"], endpoint="add_device")
    @login_required
    def add_device(*, actor):
        data = json_body()
        device = container.device_catalog_service.add_device(
            actor=actor,
            name=require_field(data, "name"),
            device_type=data.get("device_type") or "",
            description=data.get("description") or "",
        )
        return jsonify(to_json(device)), 201

    @app.route("/devices/<int:device_id>", methods=["PUT", "PATCH"], endpoint="update_device")
    @login_required
    def update_device(device_id: int, *, actor):
        data = json_body()
        device = container.device_catalog_service.update_device(
            actor=actor,
            device_id=device_id,
            name=data.get("name"),
            device_type=data.get("device_type"),
            description=data.get("description"),
        )
        return jsonify(to_json(device))

    @app.route("/devices/<int:device_id>", methods=["DELETE"], endpoint="retire_device")
    @login_required
    def retire_device(device_id: int, *, actor):
        container.device_catalog_service.retire_device(actor=actor, device_id=device_id)
        return "", 204

    # Borrow requests
    @app.route("/device-requests", methods=["POST"], endpoint="create_device_request")
    @login_required
    def create_device_request(*, actor):
        data = json_body()
        req = container.device_request_service.create(actor=actor, device_id=int_field(data, "device_id"))
        return jsonify(to_json(req)), 201

    @app.route("/device-requests", methods=["GET"], endpoint="my_device_requests")
    @login_required
    def my_device_requests(*, actor):
        return jsonify(to_json(list(container.device_request_service.list_my_requests(actor=actor))))

    @app.route("/device-requests/pending", methods=["GET"], endpoint="pending_device_requests")
    @login_required
    def pending_device_requests(*, actor):
        return jsonify(to_json(list(container.device_request_service.list_pending(actor=actor))))

    @app.route("/device-requests/return-pending", methods=["GET"], endpoint="return_pending_device_requests")
    @login_required
    def return_pending_device_requests(*, actor):
        return jsonify(to_json(list(container.device_request_service.list_return_pending(actor=actor))))

    @app.route("/device-requests/<int:request_id>", methods=["GET"], endpoint="get_device_request")
    @login_required
    def get_device_request(request_id: int, *, actor):
        return jsonify(to_json(container.device_request_service.get_request(actor=actor, request_id=request_id)))

    @app.route("/device-requests/<int:request_id>/approve", methods=["POST"], endpoint="approve_device_request")
    @login_required
    def approve_device_request(request_id: int, *, actor):
        req = container.device_request_service.approve(actor=actor, request_id=request_id)
        return jsonify(to_json(req))

    @app.route("/device-requests/<int:request_id>/reject", methods=["POST"], endpoint="reject_device_request")
    @login_required
    def reject_device_request(request_id: int, *, actor):
        data = json_body()
        req = container.device_request_service.reject(
            actor=actor,
            request_id=request_id,
            reason=data.get("reason") or "",
        )
        return jsonify(to_json(req))

    @app.route("/device-requests/<int:request_id>/collect", methods=["POST"], endpoint="collect_device")
    @login_required
    def collect_device(request_id: int, *, actor):
        req = container.device_request_service.collect(actor=actor, request_id=request_id)
        return jsonify(to_json(req))

    @app.route("/device-requests/<int:request_id>/return", methods=["POST"], endpoint="return_device")
    @login_required
    def return_device(request_id: int, *, actor):
        req = container.device_request_service.initiate_return(actor=actor, request_id=request_id)
        return jsonify(to_json(req))

    @app.route("/device-requests/<int:request_id>/confirm-return", methods=["POST"], endpoint="confirm_device_return")
    @login_required
    def confirm_device_return(request_id: int, *, actor):
        req = container.device_request_service.confirm_return(actor=actor, request_id=request_id)
        return jsonify(to_json(req))

    @app.route("/device-requests/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_device_request")
    @login_required
    def cancel_device_request(request_id: int, *, actor):
        req = container.device_request_service.cancel(actor=actor, request_id=request_id)
        return jsonify(to_json(req))

    @app.route("/device-requests/<int:request_id>/admin-cancel", methods=["POST"], endpoint="admin_cancel_device_request")
    @login_required
    def admin_cancel_device_request(request_id: int, *, actor):
        req = container.device_request_service.admin_cancel(actor=actor, request_id=request_id)
        return jsonify(to_json(req))
