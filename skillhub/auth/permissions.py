"""Role-based access control for SkillHub.

Roles are hierarchical: ADMIN (2) > FACULTY (1) > STUDENT (0). Some routes
need an exact role instead (only students enroll or chat with SkillBot).
"""

from enum import Enum


class UserRole(str, Enum):
    """Account roles."""

    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.FACULTY: 1,
    UserRole.ADMIN: 2,
}

# Roles a visitor may pick on the registration form
SELF_REGISTRABLE_ROLES = frozenset({UserRole.STUDENT, UserRole.FACULTY})


def get_role_level(role: UserRole | str) -> int:
    """Permission level for a role; unknown roles get -1."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return -1
    return ROLE_HIERARCHY.get(role, -1)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if ``user_role`` is at least ``required_role``.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.FACULTY)
        True
        >>> has_permission("student", "faculty")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    return UserRole(role) == UserRole.ADMIN


def is_student(role: UserRole | str) -> bool:
    return UserRole(role) == UserRole.STUDENT


def is_at_least_faculty(role: UserRole | str) -> bool:
    """Check if role is FACULTY or ADMIN."""
    return has_permission(role, UserRole.FACULTY)
