# Overview: HTTP error types raised by services/routes and the app-wide handlers that serialize them.

# backend/dairy_api/errors.py
"""
Error taxonomy for the API.

Services raise ApiError subclasses carrying an HTTP status. The handlers
registered by register_error_handlers() roll back the request session and
serialize every failure as:

    {"error": {"message": str, "status": int}}

Validation failures add a "fields" mapping of field -> message.
"""
from __future__ import annotations

import traceback

from flask import current_app, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .extensions import db


class ApiError(Exception):
    """Base error with an HTTP status code."""
    status = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class BadRequestError(ApiError):
    status = 400


class UnauthorizedError(ApiError):
    status = 401


class ForbiddenError(ApiError):
    status = 403


class NotFoundError(ApiError):
    status = 404


class ConflictError(ApiError):
    status = 409


def error_response(message: str, status: int, **extra):
    body = {"message": message, "status": status}
    body.update(extra)
    return jsonify({"error": body}), status


def _integrity_status(exc: IntegrityError) -> tuple[int, str]:
    text = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    if "unique" in text or "duplicate" in text:
        return 409, "A record with the same unique value already exists"
    if "foreign key" in text:
        return 400, "Referenced record does not exist or is still in use"
    if "not null" in text:
        return 400, "A required field is missing"
    return 400, "Database constraint violated"


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        db.session.rollback()
        if exc.status >= 500:
            current_app.logger.error("API error: %s", exc.message)
        extra = {}
        fields = getattr(exc, "fields", None)
        if fields:
            extra["fields"] = fields
        return error_response(exc.message, exc.status, **extra)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        db.session.rollback()
        status, message = _integrity_status(exc)
        current_app.logger.warning("Integrity error: %s", exc.orig)
        return error_response(message, status)

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return error_response(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        extra = {}
        if current_app.debug:
            extra["stack"] = traceback.format_exc()
        return error_response("Internal server error", 500, **extra)
