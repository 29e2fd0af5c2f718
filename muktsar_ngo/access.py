"""Role checks and enforcement helpers.

The backend decides what each role may do; the client mirrors those rules so
it can refuse an action before sending a request that would only come back
as a 403. `require_roles` is the single enforcement point used by the
service layers.
"""

from __future__ import annotations

from typing import Iterable, Literal, Optional

from muktsar_ngo.api.errors import AccessDeniedError
from muktsar_ngo.api.models import Role, User

ADMIN_ROLES = frozenset({Role.ADMIN.value, Role.SUPER_ADMIN.value})

AlertView = Literal["admin", "donor", "unknown"]


def _role_of(user: Optional[User]) -> Optional[str]:
    if user is None or not user.role:
        return None
    return user.role.upper()


def is_admin(user: Optional[User]) -> bool:
    return _role_of(user) in ADMIN_ROLES


def is_donor(user: Optional[User]) -> bool:
    return _role_of(user) == Role.DONOR.value


def has_role(user: Optional[User], allowed: Iterable[Role | str]) -> bool:
    role = _role_of(user)
    if role is None:
        return False
    return role in {r.value if isinstance(r, Role) else str(r).upper() for r in allowed}


def require_roles(user: Optional[User], allowed: Iterable[Role | str], action: str) -> None:
    """Raise `AccessDeniedError` if the user's role is not in `allowed`.

    Args:
        user: Logged-in user, or None when nobody is logged in.
        allowed: Roles permitted to perform the action.
        action: Short description used in the error, e.g. "create alerts".

    Raises:
        AccessDeniedError: If the user is missing or has another role.
    """
    if not has_role(user, allowed):
        raise AccessDeniedError(action, _role_of(user))


def require_admin(user: Optional[User], action: str) -> None:
    require_roles(user, ADMIN_ROLES, action)


def require_donor(user: Optional[User], action: str) -> None:
    require_roles(user, (Role.DONOR,), action)


def alert_view_for(user: Optional[User]) -> AlertView:
    """Which alert listing the user gets: all alerts, donor-specific, or neither."""
    if is_admin(user):
        return "admin"
    if is_donor(user):
        return "donor"
    return "unknown"


__all__ = [
    "ADMIN_ROLES",
    "AlertView",
    "alert_view_for",
    "has_role",
    "is_admin",
    "is_donor",
    "require_admin",
    "require_donor",
    "require_roles",
]
