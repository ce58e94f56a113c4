"""Tests for role hierarchy helpers."""

import pytest

from skillhub.auth.permissions import (
    UserRole,
    get_role_level,
    has_permission,
    is_admin,
    is_at_least_faculty,
    is_student,
)


class TestRoleHierarchy:
    """Tests for role levels and permission checks."""

    @pytest.mark.parametrize(
        ("role", "level"),
        [(UserRole.STUDENT, 0), (UserRole.FACULTY, 1), (UserRole.ADMIN, 2), ("faculty", 1)],
    )
    def test_role_levels(self, role, level) -> None:
        assert get_role_level(role) == level

    def test_unknown_role_has_no_level(self) -> None:
        assert get_role_level("teacher") == -1

    def test_admin_has_faculty_permission(self) -> None:
        assert has_permission(UserRole.ADMIN, UserRole.FACULTY) is True

    def test_student_lacks_faculty_permission(self) -> None:
        assert has_permission("student", "faculty") is False

    def test_unknown_role_lacks_student_permission(self) -> None:
        assert has_permission("guest", UserRole.STUDENT) is False

    def test_role_predicates(self) -> None:
        assert is_admin("admin")
        assert is_student(UserRole.STUDENT)
        assert is_at_least_faculty("faculty")
        assert not is_at_least_faculty("student")
