"""
resale_services.access -- Role-based gating of dashboard actions.

Responsibility:
    Decide whether the logged-in user's role grants a permission. Admins
    may do everything; managers may read and edit records but may not
    delete them and may not manage accounts.

Architecture position:
    Services layer. Consumes the injected ``AuthSession``; screens and the
    account service call ``require_permission`` before a destructive or
    admin-only request. The backend's own authorization stays
    authoritative.

Invariants:
    - Permissions are "<resource>.<verb>" strings from PERMISSIONS.
    - An unauthenticated session is granted nothing.
"""

from __future__ import annotations

from resale_kernel.domain.entities import UserRole
from resale_kernel.domain.session import AuthSession
from resale_kernel.exceptions import NotAuthenticatedError, PermissionDeniedError

RESOURCES: tuple[str, ...] = (
    "account_types",
    "budgets",
    "bills",
    "contracts",
    "customers",
    "payments",
    "suppliers",
)

# resource -> verbs a manager holds
_MANAGER_VERBS: tuple[str, ...] = ("view", "create", "update")

ACCOUNT_MANAGE = "accounts.manage"

PERMISSIONS: frozenset[str] = frozenset(
    {f"{r}.{v}" for r in RESOURCES for v in ("view", "create", "update", "delete")}
    | {ACCOUNT_MANAGE, "reports.view"}
)

ROLE_PERMISSIONS: dict[UserRole, frozenset[str]] = {
    UserRole.ADMIN: PERMISSIONS,
    UserRole.MANAGER: frozenset(
        {f"{r}.{v}" for r in RESOURCES for v in _MANAGER_VERBS} | {"reports.view"}
    ),
}


def permission_for(resource: str, verb: str) -> str:
    """Return the permission string for a resource action."""
    return f"{resource}.{verb}"


def check_permission(session: AuthSession, permission: str) -> tuple[bool, str]:
    """Check whether the session's user may perform ``permission``.

    Returns:
        (allowed, reason). reason is empty when allowed, or a short
        message when denied.
    """
    if not session.is_authenticated:
        return (False, "not logged in")
    if permission not in PERMISSIONS:
        return (False, f"unknown permission '{permission}'")
    granted = ROLE_PERMISSIONS.get(session.role, frozenset())
    if permission not in granted:
        return (False, f"role '{session.role.value}' lacks '{permission}'")
    return (True, "")


def can(session: AuthSession, permission: str) -> bool:
    return check_permission(session, permission)[0]


def require_permission(session: AuthSession, permission: str) -> None:
    """Raise unless the session's user may perform ``permission``.

    Raises:
        NotAuthenticatedError: the session holds no token.
        PermissionDeniedError: the role lacks the permission.
    """
    if not session.is_authenticated:
        raise NotAuthenticatedError()
    allowed, _ = check_permission(session, permission)
    if not allowed:
        role = session.role.value if session.role else None
        raise PermissionDeniedError(role, permission)
