"""Role-based authorization policy (framework-agnostic)."""

from __future__ import annotations

from collections.abc import Iterable

from eduportal.core.roles import Role, has_permission, parse_roles
from eduportal.security.tokens import AccessClaims
from eduportal.services._shared.errors import ForbiddenError, UnauthorizedError


def ensure_role(claims: AccessClaims | None, allowed_roles: Iterable[str | Role]) -> AccessClaims:
    """
    Require an authenticated identity whose role is in ``allowed_roles``.

    :param claims: Verified access token claims, or ``None`` when anonymous.
    :type claims: AccessClaims | None
    :param allowed_roles: Roles granted access. Must not be empty.
    :type allowed_roles: Iterable[str | Role]
    :returns: The same claims, for chaining.
    :rtype: AccessClaims
    :raises UnauthorizedError: If ``claims`` is ``None``.
    :raises ForbiddenError: If the role is not allowed.
    :raises ValueError: If ``allowed_roles`` is empty or names an unknown role.
    """
    allowed = parse_roles(allowed_roles)
    if not allowed:
        raise ValueError("At least one role must be allowed.")
    if claims is None:
        raise UnauthorizedError("Authentication required")
    if claims.role not in allowed:
        names = ", ".join(sorted(r.value for r in allowed))
        raise ForbiddenError(f"Access denied. Required roles: {names}")
    return claims


def ensure_permission(claims: AccessClaims | None, permission: str) -> AccessClaims:
    """Require an authenticated identity whose role grants ``permission``."""
    if claims is None:
        raise UnauthorizedError("Authentication required")
    if not has_permission(claims.role, permission):
        raise ForbiddenError(f"Access denied. Missing permission: {permission}")
    return claims
