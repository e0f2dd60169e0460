from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import jsonify, request, session

from ..core.exceptions import ValidationError
from ..directory.repository import ActorDirectory


def _unauthenticated(message: str):
    return jsonify({"error": "unauthenticated", "message": message, "status": "unauthenticated"}), 401


def actor_required(directory: ActorDirectory) -> Callable:
    """Resolve the acting employee from the session and pass it as ``actor=``.

    Note: ``session["user_id"]`` is written by the external login layer.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user_id = session.get("user_id")
            if user_id is None:
                return _unauthenticated("Please sign in")

            try:
                actor = directory.resolve(int(user_id))
            except (TypeError, ValueError):
                actor = None
            if actor is None:
                session.clear()
                return _unauthenticated("Unknown account")
            if not actor.active:
                return jsonify({"error": "forbidden", "message": "Account is deactivated", "status": "forbidden"}), 403

            return view(*args, actor=actor, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_field(data: dict, name: str):
    value = data.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Field '{name}' is required")
    return value


def int_field(data: dict, name: str) -> int:
    value = require_field(data, name)
    if isinstance(value, bool):
        raise ValidationError(f"Field '{name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Field '{name}' must be an integer")
