# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/dairy_api/routes/auth.py
"""
Authentication API routes.

SECURITY:
- Public registration only ever creates MEMBER accounts and can be switched
  off with ALLOW_REGISTRATION
- Login accepts email or mobile as the identifier and returns a bearer token
- Wrong credentials and unknown identifiers get the same 401
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import UnauthorizedError
from ..services import auth_service
from ..services.concurrency import commit_or_conflict
from ..validation import require_fields

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Member self-registration.

    Request body:
        { "name": str, "password": str, "email"?: str, "mobile"?: str }

    Returns:
        201: { "token": str, "user": {...} }
        400: validation error
        403: registration disabled
        409: email or mobile already registered
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("name", "password"))

    user = auth_service.register_member(payload)
    commit_or_conflict()

    current_app.logger.info("Member registered: user=%s", user.id)
    return jsonify({"token": auth_service.issue_token(user), "user": auth_service.profile_for(user)}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with email or mobile and password.

    Request body:
        { "identifier" | "email" | "mobile": str, "password": str }

    Returns:
        200: { "token": str, "user": {...} }
        401: invalid credentials
        403: account inactive
    """
    data = request.get_json(silent=True) or {}
    identifier = data.get("identifier") or data.get("email") or data.get("mobile")
    password = data.get("password")

    if not identifier or not password:
        raise UnauthorizedError("Email/mobile and password required")

    user = auth_service.authenticate(str(identifier), password)
    if not user:
        current_app.logger.info("Failed login for identifier=%s", identifier)
        raise UnauthorizedError("Invalid credentials")

    commit_or_conflict()
    return jsonify({"token": auth_service.issue_token(user), "user": auth_service.profile_for(user)}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user with role profile."""
    return jsonify({"user": auth_service.profile_for(g.current_user)}), 200


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Request body:
        { "current_password": str, "new_password": str }
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("current_password", "new_password"))

    auth_service.change_password(g.current_user, payload["current_password"], payload["new_password"])
    commit_or_conflict()
    return jsonify({"ok": True}), 200
