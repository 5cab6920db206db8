"""
Tests for the role combination validator.
"""
import pytest

from rbac import Affiliation, Role, is_valid_combination


class TestIsValidCombination:

    @pytest.mark.parametrize("role", list(Role))
    def test_no_affiliation_is_always_valid(self, role):
        assert is_valid_combination(role, None) is True

    def test_student_with_staff_is_invalid(self):
        assert is_valid_combination("student", "staff") is False

    def test_admin_takes_no_affiliation(self):
        for affiliation in Affiliation:
            assert is_valid_combination(Role.ADMIN, affiliation) is False

    def test_parent_takes_no_affiliation(self):
        for affiliation in Affiliation:
            assert is_valid_combination(Role.PARENT, affiliation) is False

    def test_teacher_cannot_join_student_council(self):
        assert is_valid_combination(Role.TEACHER, Affiliation.STUDENT_COUNCIL) is False

    @pytest.mark.parametrize("affiliation", [Affiliation.STAFF, Affiliation.VICE_PRINCIPAL, Affiliation.PRINCIPAL])
    def test_teacher_leadership_and_staff(self, affiliation):
        assert is_valid_combination(Role.TEACHER, affiliation) is True

    def test_leadership_is_teacher_only(self):
        assert is_valid_combination(Role.STUDENT, Affiliation.VICE_PRINCIPAL) is False
        assert is_valid_combination(Role.STUDENT, Affiliation.PRINCIPAL) is False

    def test_student_council(self):
        assert is_valid_combination("student", "student-council") is True

    @pytest.mark.parametrize("role,affiliation", [
        ("janitor", None),
        (None, None),
        ("teacher", "coach"),
        ("", "staff"),
    ])
    def test_unknown_values_are_invalid(self, role, affiliation):
        assert is_valid_combination(role, affiliation) is False
