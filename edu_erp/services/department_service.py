from io import StringIO

import pandas as pd

from edu_erp.errors import NotFoundError, ValidationError
from edu_erp.extensions import db
from edu_erp.models.department import Department
from edu_erp.models.faculty import Faculty
from edu_erp.services.faculty_service import get_faculty
from edu_erp.utils.validation import clean_text, parse_amount, parse_id


# ----------------------------
# READ
# ----------------------------

def get_departments():
    return (
        Department.query
        .join(Faculty)
        .order_by(Faculty.name, Department.name)
        .all()
    )


def get_department(dept_id: int) -> Department:
    dept = db.session.get(Department, dept_id)
    if dept is None:
        raise NotFoundError("Department not found")
    return dept


# ----------------------------
# CREATE / UPDATE
# ----------------------------

def add_department(name: str, faculty_id: int, **fields) -> Department:
    name = clean_text(name, "Department name")
    if not name or faculty_id in (None, ""):
        raise ValidationError("Department name and faculty are required")

    faculty = get_faculty(parse_id(faculty_id, "Faculty"))

    dept = Department(
        name=name,
        faculty_id=faculty.id,
        description=fields.get("description"),
        budget=parse_amount(fields.get("budget"), "Budget"),
        cost_center=fields.get("cost_center"),
        location=fields.get("location"),
        phone=fields.get("phone"),
        email=fields.get("email")
    )
    db.session.add(dept)
    db.session.commit()
    return dept


def update_department(dept_id: int, data: dict) -> Department:
    dept = get_department(dept_id)
    try:
        _apply(dept, data)
    except ValueError:
        db.session.rollback()
        raise
    db.session.commit()
    return dept


def _apply(dept: Department, data: dict):
    if "name" in data:
        dept.name = clean_text(data.get("name"), "Department name", required=True)

    if "facultyId" in data:
        dept.faculty_id = get_faculty(parse_id(data["facultyId"], "Faculty")).id

    if "budget" in data:
        dept.budget = parse_amount(data.get("budget"), "Budget")

    for key, attr in (
        ("description", "description"),
        ("costCenter", "cost_center"),
        ("location", "location"),
        ("phone", "phone"),
        ("email", "email"),
        ("isActive", "is_active"),
    ):
        if key in data:
            setattr(dept, attr, data[key])


# ----------------------------
# CSV EXPORT
# ----------------------------

def get_departments_as_csv():
    data = [
        {
            "ID": d.id,
            "Department": d.name,
            "Faculty": d.faculty.name,
            "Cost Center": d.cost_center or "",
            "Budget": float(d.budget or 0)
        }
        for d in get_departments()
    ]

    df = pd.DataFrame(data, columns=["ID", "Department", "Faculty", "Cost Center", "Budget"])
    buffer = StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    return buffer
