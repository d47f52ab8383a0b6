"""Account roles and the static permission table attached to each role."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    """Fixed set of portal roles, from most to least privileged."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        """Coerce a raw string into a :class:`Role`.

        :raises ValueError: If ``value`` is not a known role.
        """
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown role: {value!r}") from None


#: Role granted to accounts created through a provider login.
LOWEST_PRIVILEGE_ROLE = Role.STUDENT


ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.ADMIN: frozenset(
        {
            "users:create",
            "users:read",
            "users:update",
            "users:delete",
            "users:suspend",
            "users:unsuspend",
            "teacher_groups:create",
            "teacher_groups:read",
            "teacher_groups:update",
            "teacher_groups:delete",
            "teacher_groups:add_member",
            "teacher_groups:remove_member",
            "classes:read_all",
            "assignments:read_all",
            "grades:read_all",
        }
    ),
    Role.TEACHER: frozenset(
        {
            "classes:create",
            "classes:read_own",
            "classes:update_own",
            "classes:delete_own",
            "classes:add_student",
            "classes:remove_student",
            "assignments:create",
            "assignments:read_own",
            "assignments:update_own",
            "assignments:delete_own",
            "submissions:read_class",
            "grades:create",
            "grades:update_own",
            "grades:read_class",
        }
    ),
    Role.STUDENT: frozenset(
        {
            "classes:read_enrolled",
            "assignments:read_class",
            "grades:read_own",
            "submissions:create_own",
            "submissions:update_own",
            "submissions:read_own",
        }
    ),
}


def permissions_for(role: str | Role) -> frozenset[str]:
    """Return the permission set granted to ``role``."""
    return ROLE_PERMISSIONS[Role.parse(role)]


def has_permission(role: str | Role, permission: str) -> bool:
    """Return ``True`` if ``role`` grants ``permission``."""
    return permission in permissions_for(role)


def parse_roles(roles: Iterable[str | Role]) -> frozenset[Role]:
    """Normalize an iterable of role names into a set of :class:`Role`."""
    return frozenset(Role.parse(r) for r in roles)
