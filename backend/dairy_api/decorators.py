# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .errors import ForbiddenError, UnauthorizedError
from .permissions import ROLE_ADMIN, role_has_permission
from .services import auth_service


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the authenticated, active User.

    SECURITY: 401 if the Authorization header is missing/malformed, the token
    is invalid or expired, or the account has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            raise UnauthorizedError("Authentication required")

        token = auth_header.split(" ", 1)[1].strip()
        g.current_user = auth_service.decode_token(token)

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the caller's role to grant a specific permission."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise UnauthorizedError("Authentication required")

            user = g.current_user
            if not role_has_permission(user.role, permission_code):
                current_app.logger.info(
                    "Permission denied: user=%s role=%s permission=%s path=%s",
                    user.id, user.role, permission_code, request.path,
                )
                raise ForbiddenError(f"Permission denied: requires {permission_code}")

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_roles(*roles):
    """Require the caller to hold one of the listed roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise UnauthorizedError("Authentication required")

            if g.current_user.role not in roles:
                raise ForbiddenError(f"Requires role: {', '.join(roles)}")

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_admin(f):
    """Shortcut for require_roles(ADMIN)."""
    return require_roles(ROLE_ADMIN)(f)
