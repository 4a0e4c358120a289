from datetime import date

import pytest

from edu_erp.errors import ConflictError, ValidationError
from edu_erp.models import Student, User
from edu_erp.models.base import get_local_time
from edu_erp.services.student_service import (
    extract_sequential_number,
    extract_year_from_matricule,
    generate_matricule,
    register_student,
    validate_matricule,
    validate_registration,
)


def _payload(structure, **overrides):
    data = {
        "firstName": "Grace",
        "lastName": "Nkem",
        "email": "grace.nkem@erp.local",
        "dateOfBirth": "2004-05-17",
        "gender": "Female",
        "regionOfOrigin": "Northwest",
        "placeOfOrigin": "Bamenda",
        "facultyId": structure["faculty"].id,
        "departmentId": structure["department"].id,
        "majorId": structure["major"].id,
        "level": "undergraduate",
        "phoneNumber": "+237-650-000-000",
        "emergencyContact": {"name": "Paul Nkem", "phoneNumber": "+237-650-000-001"},
    }
    data.update(overrides)
    return data


def _existing_student(db_session, structure, matricule, year, email):
    student = Student(
        matricule=matricule,
        first_name="Existing",
        last_name="Student",
        email=email,
        faculty_id=structure["faculty"].id,
        department_id=structure["department"].id,
        major_id=structure["major"].id,
        registration_year=year,
        enrollment_date=date(year, 9, 1),
    )
    db_session.add(student)
    db_session.commit()
    return student


# ----------------------------
# MATRICULE
# ----------------------------

@pytest.mark.parametrize("matricule, valid", [
    ("ICTU20250001", True),
    ("ICTU2025001", False),
    ("ictu20250001", False),
    ("CS2025001", False),
    ("", False),
    (None, False),
])
def test_validate_matricule(matricule, valid):
    assert validate_matricule(matricule) is valid


def test_extract_parts():
    assert extract_year_from_matricule("ICTU20240042") == 2024
    assert extract_sequential_number("ICTU20240042") == 42


def test_extract_rejects_bad_format():
    with pytest.raises(ValidationError):
        extract_year_from_matricule("BA2025001")


def test_first_matricule_of_year(app):
    assert generate_matricule(2026) == "ICTU20260001"


def test_matricule_skips_taken_numbers(db_session, academic_structure):
    _existing_student(db_session, academic_structure, "ICTU20260002", 2026, "taken@erp.local")

    assert generate_matricule(2026) == "ICTU20260003"


def test_matricule_sequence_is_per_year(db_session, academic_structure):
    _existing_student(db_session, academic_structure, "ICTU20250001", 2025, "old@erp.local")

    assert generate_matricule(2026) == "ICTU20260001"
    assert generate_matricule(2025) == "ICTU20250002"


# ----------------------------
# REGISTRATION
# ----------------------------

def test_validation_collects_every_step():
    errors = validate_registration({"emergencyContact": {}})

    for field in ("firstName", "email", "facultyId", "majorId", "phoneNumber",
                  "emergencyContact.name", "emergencyContact.phoneNumber"):
        assert field in errors


def test_validation_checks_choices(academic_structure):
    errors = validate_registration(_payload(academic_structure, gender="X", regionOfOrigin="Mars", level="bsc"))

    assert set(errors) == {"gender", "regionOfOrigin", "level"}


def test_register_student(app, academic_structure):
    student = register_student(_payload(academic_structure))

    year = get_local_time().year
    assert validate_matricule(student.matricule)
    assert extract_year_from_matricule(student.matricule) == year
    assert student.registration_year == year
    assert student.level == 1
    assert student.degree_level == "undergraduate"
    assert student.status == "active"
    assert student.user.role == "student"
    assert student.user.email == "grace.nkem@erp.local"


def test_register_links_existing_account(academic_structure, create_user):
    user = create_user("grace.nkem@erp.local", "student")

    student = register_student(_payload(academic_structure, email="Grace.Nkem@erp.local"))

    assert student.user_id == user.id
    assert User.query.filter_by(email="grace.nkem@erp.local").count() == 1


@pytest.mark.parametrize("role", ["admin", "lecturer", "finance_staff"])
def test_register_refuses_staff_account_email(academic_structure, create_user, role):
    create_user("grace.nkem@erp.local", role)

    with pytest.raises(ConflictError) as exc:
        register_student(_payload(academic_structure))

    assert exc.value.message == "Email belongs to a non-student account"
    assert Student.query.count() == 0


def test_register_refuses_account_that_already_has_a_record(db_session, academic_structure, create_user):
    user = create_user("grace.nkem@erp.local", "student")
    existing = _existing_student(db_session, academic_structure, "ICTU20240001", 2024, "grace.old@erp.local")
    existing.user_id = user.id
    db_session.commit()

    with pytest.raises(ConflictError):
        register_student(_payload(academic_structure))

    assert Student.query.count() == 1


def test_register_endpoint_refuses_own_admin_email(client, academic_structure, admin, auth_header):
    response = client.post(
        "/api/students/register",
        json=_payload(academic_structure, email=admin.email),
        headers=auth_header(admin)
    )

    assert response.status_code == 409
    assert response.get_json()["errors"] == {"email": "Email belongs to a non-student account"}


@pytest.mark.parametrize("overrides, field", [
    ({"firstName": 7}, "firstName"),
    ({"email": ["grace@erp.local"]}, "email"),
    ({"emergencyContact": "Paul Nkem"}, "emergencyContact"),
    ({"address": "Main street"}, "address"),
])
def test_registration_reports_malformed_fields(academic_structure, overrides, field):
    with pytest.raises(ValidationError) as exc:
        register_student(_payload(academic_structure, **overrides))

    assert field in exc.value.errors


def test_registration_rejects_malformed_ids(academic_structure):
    with pytest.raises(ValidationError) as exc:
        register_student(_payload(academic_structure, facultyId="abc"))

    assert exc.value.errors == {"facultyId": "Invalid selection"}


def test_register_rejects_invalid_payload(academic_structure):
    with pytest.raises(ValidationError) as exc:
        register_student(_payload(academic_structure, firstName="", emergencyContact={}))

    assert exc.value.message == "Please correct the highlighted fields"
    assert "firstName" in exc.value.errors
    assert "emergencyContact.name" in exc.value.errors


def test_department_must_belong_to_faculty(academic_structure):
    data = _payload(academic_structure, departmentId=academic_structure["other_department"].id)

    with pytest.raises(ValidationError) as exc:
        register_student(data)

    assert "departmentId" in exc.value.errors


def test_major_must_belong_to_department(academic_structure):
    data = _payload(academic_structure, majorId=academic_structure["other_major"].id)

    with pytest.raises(ValidationError) as exc:
        register_student(data)

    assert "majorId" in exc.value.errors


def test_duplicate_student_email(academic_structure):
    register_student(_payload(academic_structure))

    with pytest.raises(ConflictError):
        register_student(_payload(academic_structure))


def test_consecutive_registrations_get_consecutive_matricules(academic_structure):
    first = register_student(_payload(academic_structure))
    second = register_student(_payload(academic_structure, email="second@erp.local"))

    assert extract_sequential_number(second.matricule) == extract_sequential_number(first.matricule) + 1


# ----------------------------
# API
# ----------------------------

def test_register_endpoint_requires_staff_role(client, academic_structure, student_user, auth_header):
    response = client.post(
        "/api/students/register",
        json=_payload(academic_structure),
        headers=auth_header(student_user)
    )

    assert response.status_code == 403


def test_register_endpoint(client, academic_structure, admin, auth_header):
    response = client.post(
        "/api/students/register",
        json=_payload(academic_structure),
        headers=auth_header(admin)
    )

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert data["matricule"].startswith("ICTU")
    assert data["facultyName"] == "Faculty of Science and Technology"


def test_register_endpoint_returns_field_errors(client, academic_structure, admin, auth_header):
    response = client.post(
        "/api/students/register",
        json=_payload(academic_structure, phoneNumber=""),
        headers=auth_header(admin)
    )

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["errors"] == {"phoneNumber": "Phone number is required"}


def test_list_students_paginates_and_searches(client, academic_structure, admin, auth_header):
    for i in range(3):
        register_student(_payload(academic_structure, email=f"s{i}@erp.local", lastName=f"Name{i}"))

    page = client.get("/api/students?page=2&limit=2", headers=auth_header(admin)).get_json()
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert len(page["data"]) == 1

    found = client.get("/api/students?search=name1", headers=auth_header(admin)).get_json()
    assert [s["lastName"] for s in found["data"]] == ["Name1"]


def test_list_students_rejects_unknown_status(client, admin, auth_header):
    response = client.get("/api/students?status=expelled", headers=auth_header(admin))

    assert response.status_code == 400


def test_student_sees_only_own_record(client, academic_structure, create_user, auth_header):
    own = register_student(_payload(academic_structure))
    other = register_student(_payload(academic_structure, email="other@erp.local"))
    headers = auth_header(own.user)

    assert client.get(f"/api/students/{own.id}", headers=headers).status_code == 200
    assert client.get(f"/api/students/{other.id}", headers=headers).status_code == 403
    assert client.get("/api/students/9999", headers=headers).status_code == 404


def test_registration_slip_download(client, academic_structure, admin, auth_header):
    student = register_student(_payload(academic_structure))

    response = client.get(f"/api/students/{student.id}/registration-slip", headers=auth_header(admin))

    assert response.status_code == 200
    assert response.mimetype.endswith("wordprocessingml.document")
    assert f"{student.matricule}_Registration_Slip.docx" in response.headers["Content-Disposition"]
    assert response.data[:2] == b"PK"


def test_students_csv_export(client, academic_structure, admin, auth_header):
    register_student(_payload(academic_structure))

    response = client.get("/api/students/export", headers=auth_header(admin))

    lines = response.get_data(as_text=True).strip().splitlines()
    assert lines[0] == "Matricule,Name,Email,Faculty,Department,Major,Level,Status"
    assert "Grace Nkem" in lines[1]


# ----------------------------
# PAGES
# ----------------------------

def test_registration_page_flow(client, academic_structure, create_user, login):
    login(create_user("coordinator@erp.local", "faculty_coordinator"))
    structure = academic_structure
    form = {
        "firstName": "Grace", "lastName": "Nkem", "email": "grace.nkem@erp.local",
        "dateOfBirth": "2004-05-17", "gender": "Female", "regionOfOrigin": "Northwest",
        "placeOfOrigin": "Bamenda", "facultyId": structure["faculty"].id,
        "departmentId": structure["department"].id, "majorId": structure["major"].id,
        "level": "undergraduate", "phoneNumber": "+237-650-000-000",
        "emergencyContactName": "Paul Nkem", "emergencyContactPhone": "+237-650-000-001",
    }

    response = client.post("/academic/register", data=form)

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/academic/students")
    assert Student.query.filter_by(email="grace.nkem@erp.local").count() == 1


def test_registration_page_shows_field_errors(client, academic_structure, admin, login):
    login(admin)

    response = client.post("/academic/register", data={"firstName": "Grace"})

    assert response.status_code == 200
    assert b"Please correct the highlighted fields" in response.data
    assert b"Emergency contact name is required" in response.data


def test_students_page_csv_with_unknown_status_redirects(client, admin, login):
    login(admin)

    response = client.get("/academic/students?status=bogus&format=csv")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/academic/students")
    with client.session_transaction() as sess:
        assert ("danger", "Unknown status: bogus") in sess["_flashes"]
