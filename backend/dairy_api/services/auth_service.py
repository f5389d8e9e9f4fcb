# Overview: Service-layer operations for auth; password hashing, user creation and bearer tokens.

"""
Authentication service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 6 characters required
- Login accepts email or 10-digit mobile as the identifier
- Bearer tokens are HS256 JWTs signed with JWT_SECRET and carry the user id
  and role; the user row is re-read on every request so deactivation takes
  effect immediately
"""
from __future__ import annotations

import logging
from datetime import timedelta

import bcrypt
import jwt
from flask import current_app

from ..errors import ConflictError, ForbiddenError, UnauthorizedError
from ..extensions import db
from ..models import Member, User
from ..permissions import ALL_ROLES, ROLE_MEMBER
from ..time_utils import parse_date, utcnow
from ..validation import ValidationError, enforce_rules_mobile

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
JWT_ALGORITHM = "HS256"


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""

    def __init__(self, message: str):
        super().__init__(message, {"password": message})


def validate_password_strength(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def _normalize_mobile(mobile) -> str | None:
    if mobile is None:
        return None
    mobile = str(mobile).strip()
    return mobile or None


def create_user(
    *,
    name: str,
    password: str,
    role: str = ROLE_MEMBER,
    email: str | None = None,
    mobile: str | None = None,
    depot_id: int | None = None,
    joining_date=None,
    is_active: bool = True,
) -> User:
    """
    Create a user (and the Member profile for MEMBER accounts).

    Flushes but does not commit; the caller owns the transaction.

    Raises:
        ValidationError: missing name/identifier, bad mobile, weak password, unknown role
        ConflictError: email or mobile already registered
    """
    name = (name or "").strip()
    email = _normalize_email(email)
    mobile = _normalize_mobile(mobile)

    if not name:
        raise ValidationError("Name is required", {"name": "is required"})
    if not email and not mobile:
        raise ValidationError("Email or mobile is required", {"email": "email or mobile is required"})
    if email and "@" not in email:
        raise ValidationError("Invalid email address", {"email": "invalid email"})
    enforce_rules_mobile(mobile)
    if role not in ALL_ROLES:
        raise ValidationError(f"Invalid role: {role}", {"role": "invalid role"})

    if email and db.session.query(User.id).filter(User.email == email).first():
        raise ConflictError("Email already registered")
    if mobile and db.session.query(User.id).filter(User.mobile == mobile).first():
        raise ConflictError("Mobile number already registered")

    user = User(
        name=name,
        email=email,
        mobile=mobile,
        password_hash=hash_password(password),
        role=role,
        depot_id=depot_id,
        joining_date=parse_date(joining_date) if joining_date else None,
        is_active=is_active,
    )
    db.session.add(user)
    db.session.flush()

    if role == ROLE_MEMBER:
        db.session.add(Member(user_id=user.id, name=name, wallet_balance=0))
        db.session.flush()

    logger.info("Created %s user %s", role, user.id)
    return user


def update_user(
    user: User,
    *,
    name: str | None = None,
    email: str | None = None,
    mobile: str | None = None,
    password: str | None = None,
    is_active: bool | None = None,
    depot_id: int | None = None,
) -> User:
    """Apply profile edits to a login account; None leaves a field untouched."""
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Name is required", {"name": "is required"})
        user.name = name

    if email is not None:
        email = _normalize_email(email)
        if email and "@" not in email:
            raise ValidationError("Invalid email address", {"email": "invalid email"})
        if email and db.session.query(User.id).filter(User.email == email, User.id != user.id).first():
            raise ConflictError("Email already registered")
        user.email = email

    if mobile is not None:
        mobile = _normalize_mobile(mobile)
        enforce_rules_mobile(mobile)
        if mobile and db.session.query(User.id).filter(User.mobile == mobile, User.id != user.id).first():
            raise ConflictError("Mobile number already registered")
        user.mobile = mobile

    if not user.email and not user.mobile:
        raise ValidationError("Email or mobile is required", {"email": "email or mobile is required"})

    if password:
        user.password_hash = hash_password(password)
    if is_active is not None:
        user.is_active = bool(is_active)
    if depot_id is not None:
        user.depot_id = depot_id

    db.session.flush()
    return user


def list_users(*, role: str | None = None):
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.id.asc())


def register_member(payload: dict) -> User:
    """Public self-signup; always creates a MEMBER."""
    if not current_app.config.get("ALLOW_REGISTRATION", True):
        raise ForbiddenError("Registration is disabled")
    return create_user(
        name=payload.get("name"),
        password=payload.get("password"),
        email=payload.get("email"),
        mobile=payload.get("mobile"),
        role=ROLE_MEMBER,
    )


def authenticate(identifier: str, password: str) -> User | None:
    """
    Look up a user by email or mobile and verify the password.

    Returns None for unknown identifiers or wrong passwords.
    Raises ForbiddenError for deactivated accounts with correct credentials.
    Updates last_login_at on success.
    """
    identifier = (identifier or "").strip()
    if not identifier or not password:
        return None

    user = (
        db.session.query(User)
        .filter(db.or_(User.email == identifier.lower(), User.mobile == identifier))
        .first()
    )
    if not user or not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        raise ForbiddenError("Account is inactive")

    user.last_login_at = utcnow()
    db.session.flush()
    return user


def issue_token(user: User) -> str:
    now = utcnow()
    hours = current_app.config.get("JWT_EXPIRES_HOURS", 24)
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> User:
    """
    Resolve a bearer token to an active user.

    Raises:
        UnauthorizedError: expired/invalid token, unknown or inactive user
    """
    try:
        claims = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token")

    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", {"current_password": "is incorrect"})
    user.password_hash = hash_password(new_password)
    db.session.flush()


def profile_for(user: User) -> dict:
    """User dict plus the role profile (member/agency/supervisor/vendor) when present."""
    data = user.to_dict()
    if user.member is not None:
        data["member"] = user.member.to_dict()
    if user.agency is not None:
        data["agency"] = user.agency.to_dict()
    if user.supervisor is not None:
        data["supervisor"] = user.supervisor.to_dict()
    if user.vendor is not None:
        data["vendor"] = user.vendor.to_dict()
    return data
