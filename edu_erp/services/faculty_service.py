import logging
from io import StringIO

import pandas as pd

from edu_erp.errors import ConflictError, NotFoundError
from edu_erp.extensions import db
from edu_erp.models.department import Department
from edu_erp.models.faculty import Faculty
from edu_erp.utils.validation import clean_text

logger = logging.getLogger(__name__)


def get_all_faculties():
    return Faculty.query.order_by(Faculty.name).all()


def get_faculty(faculty_id: int) -> Faculty:
    faculty = db.session.get(Faculty, faculty_id)
    if faculty is None:
        raise NotFoundError("Faculty not found")
    return faculty


def add_faculty(name: str, code: str = None, description: str = None) -> Faculty:
    name = clean_text(name, "Faculty name", required=True)
    code = clean_text(code, "Faculty code").upper() or None

    if Faculty.query.filter_by(name=name).first():
        raise ConflictError("Faculty name already exists")
    if code and Faculty.query.filter_by(code=code).first():
        raise ConflictError("Faculty code already exists")

    faculty = Faculty(name=name, code=code, description=description)
    db.session.add(faculty)
    db.session.commit()
    logger.info("Faculty %s created", faculty.name)
    return faculty


def update_faculty(faculty_id: int, data: dict) -> Faculty:
    faculty = get_faculty(faculty_id)
    changes = {}

    if "name" in data:
        name = clean_text(data.get("name"), "Faculty name", required=True)
        if Faculty.query.filter(Faculty.name == name, Faculty.id != faculty.id).first():
            raise ConflictError("Faculty name already exists")
        changes["name"] = name

    if "code" in data:
        code = clean_text(data.get("code"), "Faculty code").upper() or None
        if code and Faculty.query.filter(Faculty.code == code, Faculty.id != faculty.id).first():
            raise ConflictError("Faculty code already exists")
        changes["code"] = code

    if "description" in data:
        changes["description"] = data.get("description")

    for attr, value in changes.items():
        setattr(faculty, attr, value)

    db.session.commit()
    return faculty


def get_departments_by_faculty(faculty_id: int):
    get_faculty(faculty_id)
    return (
        Department.query
        .filter_by(faculty_id=faculty_id, is_active=True)
        .order_by(Department.name)
        .all()
    )


# ----------------------------
# CSV EXPORT
# ----------------------------

def get_faculties_as_csv():
    data = [
        {
            "ID": f.id,
            "Faculty": f.name,
            "Code": f.code or "",
            "Departments": len(f.departments)
        }
        for f in get_all_faculties()
    ]

    df = pd.DataFrame(data, columns=["ID", "Faculty", "Code", "Departments"])
    buffer = StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    return buffer
