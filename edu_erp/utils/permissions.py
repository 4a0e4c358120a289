"""
Single table of page paths and the roles allowed to see them.

Navigation menus and the page guard both read from PAGE_PERMISSIONS.
"""
from dataclasses import dataclass

from edu_erp.models.user import ROLES

ADMINS = ("admin", "system_admin")
COORDINATORS = ("faculty_coordinator", "major_coordinator")
ACADEMIC_STAFF = ADMINS + ("lecturer",) + COORDINATORS
EVERYONE = ROLES
EMPLOYEES = tuple(r for r in ROLES if r != "student")


@dataclass(frozen=True)
class PageAccess:
    path: str
    title: str
    section: str
    roles: tuple


PAGE_PERMISSIONS = {
    p.path: p for p in (
        PageAccess("/dashboard", "Dashboard", "General", EVERYONE),
        PageAccess("/profile", "Profile", "General", EVERYONE),

        PageAccess("/academic/courses", "Courses", "Academic", ACADEMIC_STAFF + ("student",)),
        PageAccess("/academic/grades", "Grades", "Academic", ACADEMIC_STAFF + ("student",)),
        PageAccess("/academic/attendance", "Attendance", "Academic", ACADEMIC_STAFF + ("student",)),
        PageAccess("/academic/students", "Students", "Academic", ACADEMIC_STAFF),
        PageAccess("/academic/register", "Student Registration", "Academic", ADMINS + COORDINATORS),

        PageAccess("/finance/invoices", "Invoices", "Finance", ADMINS + ("finance_staff",)),
        PageAccess("/finance/budgets", "Budgets", "Finance", ADMINS + ("finance_staff",)),
        PageAccess("/finance/payments", "Payments", "Finance",
                   ADMINS + ("finance_staff", "marketing_staff", "student")),
        PageAccess("/finance/campaigns", "Campaigns", "Finance", ADMINS + ("marketing_staff",)),

        PageAccess("/hr/employees", "Employees", "HR", ADMINS + ("hr_staff",)),
        PageAccess("/hr/payroll", "Payroll", "HR", ADMINS + ("hr_staff",)),
        PageAccess("/hr/assets", "Assets", "HR", ADMINS + ("hr_staff",)),
        PageAccess("/hr/leave", "Leave", "HR", EMPLOYEES),
    )
}


def allowed_roles(path: str) -> tuple:
    return PAGE_PERMISSIONS[path].roles


def can_access(role: str, path: str) -> bool:
    page = PAGE_PERMISSIONS.get(path)
    return page is not None and role in page.roles


def navigation_for(role: str):
    """Visible pages for a role, grouped by section in table order."""
    sections = {}
    for page in PAGE_PERMISSIONS.values():
        if role in page.roles:
            sections.setdefault(page.section, []).append(page)
    return list(sections.items())
