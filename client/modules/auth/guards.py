"""
Role-based access decisions for protected views.

Views ask ``check_access`` before rendering and follow ``redirect_for`` when
the answer is not ALLOW. An account whose role is not recognised is treated
as unauthorized everywhere.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Union

from shared.models import Role, UserRecord

from .exceptions import InsufficientPermissionsError, NotAuthenticatedError
from .interfaces import ISessionStore

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"

DASHBOARD_PATHS = {
    Role.ADMIN: "/admin",
    Role.SELLER: "/seller",
    Role.CUSTOMER: "/customer",
}

RoleSpec = Union[Role, str, Iterable[Union[Role, str]]]


class AccessDecision(str, Enum):
    """Outcome of a route guard check."""

    ALLOW = "allow"
    PENDING = "pending"                # Session still resolving, render nothing yet
    LOGIN_REQUIRED = "login_required"  # Send to the login view
    FORBIDDEN = "forbidden"            # Logged in with the wrong role


def _role_names(roles: RoleSpec) -> list[str]:
    if isinstance(roles, str):
        roles = [roles]
    return [role.value if isinstance(role, Role) else str(role) for role in roles]


def check_access(session: ISessionStore, roles: Optional[RoleSpec] = None) -> AccessDecision:
    """
    Decide whether the current session may see a view.

    Args:
        session: The session to inspect
        roles: Allowed roles; None means any authenticated account

    Returns:
        The access decision
    """
    if session.loading and not session.is_authenticated:
        return AccessDecision.PENDING
    if not session.is_authenticated:
        return AccessDecision.LOGIN_REQUIRED
    if roles is None:
        return AccessDecision.ALLOW
    if session.current_user is None:
        # Token held but the account is still being resolved
        return AccessDecision.PENDING if session.loading else AccessDecision.FORBIDDEN
    if session.has_role(roles):
        return AccessDecision.ALLOW
    logger.debug(
        f"Access denied for role {session.current_user.role!r}, allowed: {_role_names(roles)}"
    )
    return AccessDecision.FORBIDDEN


def redirect_for(decision: AccessDecision) -> Optional[str]:
    """Where to send the user for a decision, or None to stay put."""
    if decision is AccessDecision.LOGIN_REQUIRED:
        return LOGIN_PATH
    if decision is AccessDecision.FORBIDDEN:
        return UNAUTHORIZED_PATH
    return None


def require_role(session: ISessionStore, roles: RoleSpec) -> UserRecord:
    """
    Return the current account if it holds one of ``roles``.

    Raises:
        NotAuthenticatedError: If nobody is logged in
        InsufficientPermissionsError: If the account's role is not allowed
    """
    user = session.current_user
    if user is None:
        raise NotAuthenticatedError()
    if not session.has_role(roles):
        raise InsufficientPermissionsError(
            _role_names(roles),
            user.role.value if user.role else None,
        )
    return user


def dashboard_path(user: Optional[UserRecord]) -> str:
    """Landing view for an account, based on its role."""
    if user is None:
        return LOGIN_PATH
    if user.role is None:
        return UNAUTHORIZED_PATH
    return DASHBOARD_PATHS[user.role]
