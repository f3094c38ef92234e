"""
Error taxonomy shared by services and routes.

Services raise these; the handlers registered in `register_error_handlers`
turn them into `{"error": ...}` JSON responses so no stack trace or storage
detail reaches the client.
"""
from __future__ import annotations

import logging

from flask import Flask, g, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class BackOfficeError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(BackOfficeError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(BackOfficeError):
    status_code = 403
    default_message = "Forbidden"

    def __init__(self, message: str | None = None, *, missing_permission: str | None = None):
        super().__init__(message)
        self.missing_permission = missing_permission


class NotFoundError(BackOfficeError):
    status_code = 404
    default_message = "Not found"


class ValidationError(BackOfficeError):
    status_code = 400
    default_message = "Invalid request"


class SelfDeactivationError(ValidationError):
    default_message = "You cannot deactivate yourself"


def _rollback_request_session() -> None:
    s = getattr(g, "db_session", None)
    if s is not None:
        s.rollback()


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(BackOfficeError)
    def _backoffice_error(e: BackOfficeError):
        _rollback_request_session()
        if isinstance(e, Forbidden):
            logger.warning(
                "Forbidden: missing_permission=%s request_id=%s",
                e.missing_permission,
                getattr(g, "request_id", None),
            )
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(IntegrityError)
    def _integrity_error(e: IntegrityError):
        # Unique constraints that lost a race surface here; same family as validation.
        _rollback_request_session()
        logger.warning("Integrity error (request_id=%s): %s", getattr(g, "request_id", None), e.orig)
        return jsonify({"error": "Duplicate value"}), 400

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code or 500

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        _rollback_request_session()
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500
