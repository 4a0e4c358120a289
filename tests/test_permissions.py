import pytest

from edu_erp.models.user import ROLES
from edu_erp.utils.permissions import (
    PAGE_PERMISSIONS,
    allowed_roles,
    can_access,
    navigation_for,
)


def _paths(navigation):
    return [page.path for _, pages in navigation for page in pages]


def test_every_role_in_table_exists():
    for page in PAGE_PERMISSIONS.values():
        assert set(page.roles) <= set(ROLES), page.path


@pytest.mark.parametrize("role", ROLES)
def test_dashboard_and_profile_for_everyone(role):
    assert can_access(role, "/dashboard")
    assert can_access(role, "/profile")


def test_student_navigation():
    navigation = navigation_for("student")

    assert [section for section, _ in navigation] == ["General", "Academic", "Finance"]
    assert _paths(navigation) == [
        "/dashboard", "/profile",
        "/academic/courses", "/academic/grades", "/academic/attendance",
        "/finance/payments",
    ]


def test_employee_only_sees_leave_in_hr():
    navigation = dict(navigation_for("employee"))

    assert [p.path for p in navigation["HR"]] == ["/hr/leave"]
    assert "Academic" not in navigation
    assert "Finance" not in navigation


def test_admins_see_every_page():
    for role in ("admin", "system_admin"):
        assert _paths(navigation_for(role)) == list(PAGE_PERMISSIONS)


@pytest.mark.parametrize("role, path, expected", [
    ("lecturer", "/academic/students", True),
    ("student", "/academic/students", False),
    ("lecturer", "/academic/register", False),
    ("faculty_coordinator", "/academic/register", True),
    ("marketing_staff", "/finance/payments", True),
    ("marketing_staff", "/finance/invoices", False),
    ("marketing_staff", "/finance/campaigns", True),
    ("finance_staff", "/finance/campaigns", False),
    ("hr_staff", "/hr/payroll", True),
    ("student", "/hr/leave", False),
    ("lecturer", "/hr/leave", True),
])
def test_page_rules(role, path, expected):
    assert can_access(role, path) is expected


def test_unknown_page_is_never_accessible():
    assert can_access("admin", "/nowhere") is False


def test_allowed_roles_feeds_guard():
    assert allowed_roles("/finance/budgets") == ("admin", "system_admin", "finance_staff")
