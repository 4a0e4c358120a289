import logging
import re
import secrets
from datetime import date
from io import StringIO

import pandas as pd
from sqlalchemy import or_

from edu_erp.errors import ConflictError, NotFoundError, ValidationError
from edu_erp.extensions import db
from edu_erp.models.base import get_local_time
from edu_erp.models.student import STUDENT_STATUSES, Student
from edu_erp.models.user import User
from edu_erp.services.department_service import get_department
from edu_erp.services.faculty_service import get_faculty
from edu_erp.services.major_service import get_major
from edu_erp.utils.validation import parse_id

logger = logging.getLogger(__name__)

MATRICULE_PREFIX = "ICTU"
MATRICULE_PATTERN = re.compile(r"^ICTU(\d{4})(\d{4})$")

REGIONS = (
    "Adamawa", "Centre", "East", "Far North", "Littoral",
    "North", "Northwest", "South", "Southwest", "West",
)
GENDERS = ("Male", "Female", "Other")
STUDENT_TYPES = ("regular", "transfer")
DEGREE_LEVELS = ("undergraduate", "masters", "phd")

TEXT_FIELDS = (
    "firstName", "lastName", "email", "dateOfBirth", "gender", "regionOfOrigin",
    "placeOfOrigin", "level", "studentType", "phoneNumber",
)

# Viewers of any student record
STUDENT_RECORD_ROLES = (
    "admin", "system_admin", "lecturer",
    "faculty_coordinator", "major_coordinator", "finance_staff",
)


# ----------------------------
# MATRICULE
# ----------------------------

def validate_matricule(matricule: str) -> bool:
    return bool(matricule and MATRICULE_PATTERN.match(matricule))


def extract_year_from_matricule(matricule: str) -> int:
    match = MATRICULE_PATTERN.match(matricule or "")
    if not match:
        raise ValidationError("Invalid matricule format")
    return int(match.group(1))


def extract_sequential_number(matricule: str) -> int:
    match = MATRICULE_PATTERN.match(matricule or "")
    if not match:
        raise ValidationError("Invalid matricule format")
    return int(match.group(2))


def generate_matricule(registration_year: int = None) -> str:
    """
    ICTU + year + 4-digit sequence, e.g. ICTU20250001.
    The sequence follows the number of students already registered
    that year and skips numbers that are taken.
    """
    year = registration_year or get_local_time().year
    sequence = Student.query.filter_by(registration_year=year).count() + 1

    while True:
        if sequence > 9999:
            raise ValidationError(f"No matricule numbers left for {year}")
        matricule = f"{MATRICULE_PREFIX}{year}{sequence:04d}"
        if not Student.query.filter_by(matricule=matricule).first():
            return matricule
        sequence += 1


# ----------------------------
# REGISTRATION
# ----------------------------

def _parse_date(value):
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def validate_registration(data: dict) -> dict:
    """Run the personal, academic and contact checks; return field -> message."""
    errors = {}

    for field in TEXT_FIELDS:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            errors[field] = "Must be text"

    emergency = data.get("emergencyContact") or {}
    if not isinstance(emergency, dict):
        errors["emergencyContact"] = "Emergency contact must be an object"
        emergency = {}
    if not isinstance(data.get("address") or {}, dict):
        errors["address"] = "Address must be an object"

    # Personal information
    if not data.get("firstName"):
        errors["firstName"] = "First name is required"
    if not data.get("lastName"):
        errors["lastName"] = "Last name is required"
    if not data.get("email"):
        errors["email"] = "Email is required"
    if not data.get("dateOfBirth"):
        errors["dateOfBirth"] = "Date of birth is required"
    elif _parse_date(data.get("dateOfBirth")) is None:
        errors["dateOfBirth"] = "Date of birth must be a valid date"
    if not data.get("gender"):
        errors["gender"] = "Gender is required"
    elif data["gender"] not in GENDERS:
        errors["gender"] = f"Gender must be one of: {', '.join(GENDERS)}"
    if not data.get("regionOfOrigin"):
        errors["regionOfOrigin"] = "Region of origin is required"
    elif data["regionOfOrigin"] not in REGIONS:
        errors["regionOfOrigin"] = "Unknown region of origin"
    if not data.get("placeOfOrigin"):
        errors["placeOfOrigin"] = "Place of origin is required"

    # Academic selection
    if not data.get("facultyId"):
        errors["facultyId"] = "Faculty is required"
    if not data.get("departmentId"):
        errors["departmentId"] = "Department is required"
    if not data.get("majorId"):
        errors["majorId"] = "Major is required"
    if not data.get("level"):
        errors["level"] = "Level is required"
    elif data["level"] not in DEGREE_LEVELS:
        errors["level"] = f"Level must be one of: {', '.join(DEGREE_LEVELS)}"
    if data.get("studentType") and data["studentType"] not in STUDENT_TYPES:
        errors["studentType"] = "Unknown student type"

    # Contact & emergency
    if not data.get("phoneNumber"):
        errors["phoneNumber"] = "Phone number is required"
    if not emergency.get("name"):
        errors["emergencyContact.name"] = "Emergency contact name is required"
    if not emergency.get("phoneNumber"):
        errors["emergencyContact.phoneNumber"] = "Emergency contact phone is required"

    return errors


def _as_id(data: dict, field: str) -> int:
    return parse_id(data.get(field), field, field=field)


def _resolve_academic_selection(data: dict):
    faculty = get_faculty(_as_id(data, "facultyId"))
    department = get_department(_as_id(data, "departmentId"))
    major = get_major(_as_id(data, "majorId"))

    if department.faculty_id != faculty.id:
        raise ValidationError(
            "Department does not belong to the selected faculty",
            errors={"departmentId": "Department does not belong to the selected faculty"}
        )
    if major.department_id != department.id:
        raise ValidationError(
            "Major does not belong to the selected department",
            errors={"majorId": "Major does not belong to the selected department"}
        )
    return faculty, department, major


def _account_for(email: str, first_name: str, last_name: str) -> User:
    user = User.query.filter_by(email=email).first()
    if user:
        # Only a student account without a record of its own can be linked
        if user.role != "student":
            raise ConflictError(
                "Email belongs to a non-student account",
                errors={"email": "Email belongs to a non-student account"}
            )
        if Student.query.filter_by(user_id=user.id).first():
            raise ConflictError(
                "This account already has a student record",
                errors={"email": "This account already has a student record"}
            )
        return user

    # Password is set later through the reset flow
    user = User(email=email, first_name=first_name, last_name=last_name, role="student")
    user.set_password(secrets.token_urlsafe(24))
    db.session.add(user)
    return user


def register_student(data: dict) -> Student:
    errors = validate_registration(data)
    if errors:
        raise ValidationError("Please correct the highlighted fields", errors=errors)

    faculty, department, major = _resolve_academic_selection(data)

    email = data["email"].strip().lower()
    if Student.query.filter_by(email=email).first():
        raise ConflictError("A student with this email is already registered")

    first_name = data["firstName"].strip()
    last_name = data["lastName"].strip()
    today = get_local_time().date()

    try:
        semester = int(data.get("semester") or 1)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("Semester must be a number", errors={"semester": "Semester must be a number"})

    user = _account_for(email, first_name, last_name)

    student = Student(
        matricule=generate_matricule(today.year),
        user=user,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=data.get("phoneNumber"),
        gender=data.get("gender"),
        date_of_birth=_parse_date(data.get("dateOfBirth")),
        region_of_origin=data.get("regionOfOrigin"),
        place_of_origin=data.get("placeOfOrigin"),
        address=data.get("address") or {},
        emergency_contact=data.get("emergencyContact") or {},
        faculty_id=faculty.id,
        department_id=department.id,
        major_id=major.id,
        semester=semester,
        level=1,
        degree_level=data["level"],
        student_type=data.get("studentType") or "regular",
        enrollment_date=today,
        registration_year=today.year,
        status="active",
        gpa=0,
        total_credits=0
    )
    db.session.add(student)
    db.session.commit()

    logger.info("Registered student %s (%s)", student.matricule, student.email)
    return student


# ----------------------------
# READ
# ----------------------------

def get_student(student_id: int) -> Student:
    student = db.session.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student not found")
    return student


def can_access_student(user: User, student: Student) -> bool:
    if user.role in STUDENT_RECORD_ROLES:
        return True
    return user.role == "student" and student.user_id == user.id


def _filtered_students(search=None, status=None, faculty_id=None):
    query = Student.query

    if status:
        if status not in STUDENT_STATUSES:
            raise ValidationError(f"Unknown status: {status}")
        query = query.filter(Student.status == status)

    if faculty_id:
        query = query.filter(Student.faculty_id == faculty_id)

    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Student.first_name.ilike(term),
            Student.last_name.ilike(term),
            Student.matricule.ilike(term),
            Student.email.ilike(term),
        ))

    return query.order_by(Student.last_name, Student.first_name)


def get_students(page=1, limit=10, search=None, status=None, faculty_id=None):
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or 10), 1), 100)

    query = _filtered_students(search, status, faculty_id)
    total = query.count()
    students = query.offset((page - 1) * limit).limit(limit).all()

    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }
    return students, pagination


def get_students_as_csv(search=None, status=None, faculty_id=None):
    data = [
        {
            "Matricule": s.matricule,
            "Name": s.full_name,
            "Email": s.email,
            "Faculty": s.faculty.name,
            "Department": s.department.name,
            "Major": s.major.name,
            "Level": s.level,
            "Status": s.status
        }
        for s in _filtered_students(search, status, faculty_id).all()
    ]

    columns = ["Matricule", "Name", "Email", "Faculty", "Department", "Major", "Level", "Status"]
    df = pd.DataFrame(data, columns=columns)
    buffer = StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    return buffer
