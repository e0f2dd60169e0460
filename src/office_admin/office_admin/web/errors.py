from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    InvalidIntervalError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from .serializers import to_json

logger = logging.getLogger(__name__)

# Stable classification per error kind: (HTTP status, status label).
ERROR_STATUS = {
    NotFoundError: (404, "not-found"),
    ForbiddenError: (403, "forbidden"),
    InvalidTransitionError: (400, "bad-request"),
    InvalidIntervalError: (400, "bad-request"),
    ValidationError: (400, "bad-request"),
    ConflictError: (409, "conflict"),
}


def classify(error: DomainError) -> tuple[int, str]:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400, "bad-request"


def error_response(kind: str, message: str, status: int, label: str):
    return jsonify({"error": kind, "message": message, "status": label}), status


def register(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status, label = classify(e)
        body = {"error": e.kind, "message": str(e), "status": label}
        if isinstance(e, ConflictError):
            if e.conflicting_id is not None:
                body["conflicting_id"] = e.conflicting_id
            if e.details:
                body["details"] = to_json(e.details)
        return jsonify(body), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        code = e.code or 500
        label = "not-found" if code == 404 else "bad-request" if code < 500 else "internal"
        return error_response(e.name.lower().replace(" ", "_"), e.description or e.name, code, label)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        if bool(app.config.get("DEBUG", False)):
            return error_response("internal_error", f"Internal error: {e}", 500, "internal")
        return error_response("internal_error", "Internal error", 500, "internal")
