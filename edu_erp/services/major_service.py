from edu_erp.errors import NotFoundError, ValidationError
from edu_erp.extensions import db
from edu_erp.models.major import Major
from edu_erp.services.department_service import get_department
from edu_erp.utils.validation import clean_text, parse_id


def get_majors(department_id: int = None):
    query = Major.query
    if department_id:
        query = query.filter_by(department_id=department_id)
    return query.order_by(Major.name).all()


def get_major(major_id: int) -> Major:
    major = db.session.get(Major, major_id)
    if major is None:
        raise NotFoundError("Major not found")
    return major


def add_major(name: str, department_id: int, description: str = None) -> Major:
    name = clean_text(name, "Major name")
    if not name or department_id in (None, ""):
        raise ValidationError("Major name and department are required")

    department = get_department(parse_id(department_id, "Department"))

    major = Major(name=name, department_id=department.id, description=description)
    db.session.add(major)
    db.session.commit()
    return major


def update_major(major_id: int, data: dict) -> Major:
    major = get_major(major_id)

    try:
        if "name" in data:
            major.name = clean_text(data.get("name"), "Major name", required=True)
        if "departmentId" in data:
            major.department_id = get_department(parse_id(data["departmentId"], "Department")).id
    except ValueError:
        db.session.rollback()
        raise

    if "description" in data:
        major.description = data.get("description")

    db.session.commit()
    return major
