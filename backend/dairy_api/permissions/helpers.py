# Overview: Lookups over the static permission catalogue for the perms CLI.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS

_BY_CODE = {perm[0]: perm for perm in PERMISSION_DEFINITIONS}


def get_all_permission_codes():
    """Every permission code, in catalogue order."""
    return list(_BY_CODE)


def get_permissions_by_category(category):
    """(code, name, description, category) tuples in one category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """A permission as a dict, or None for an unknown code."""
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    return dict(zip(("code", "name", "description", "category"), perm))


def get_role_permissions(role):
    """Permission codes granted to a role (empty for unknown roles)."""
    return list(DEFAULT_ROLE_PERMISSIONS.get(role, []))


def validate_permission_code(code):
    return code in _BY_CODE
