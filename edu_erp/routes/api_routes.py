from flask import Blueprint, Response, g, jsonify, request, send_file

from edu_erp.errors import AuthorizationError
from edu_erp.services.department_service import (
    add_department,
    get_departments,
    get_departments_as_csv,
    update_department,
)
from edu_erp.services.faculty_service import (
    add_faculty,
    get_all_faculties,
    get_departments_by_faculty,
    get_faculties_as_csv,
    update_faculty,
)
from edu_erp.services.major_service import add_major, get_majors, update_major
from edu_erp.services.registration_slip_service import generate_registration_slip
from edu_erp.services.student_service import (
    STUDENT_RECORD_ROLES,
    can_access_student,
    get_student,
    get_students,
    get_students_as_csv,
    register_student,
)
from edu_erp.utils.decorators import api_roles_required, token_required
from edu_erp.utils.validation import payload_dict
from edu_erp.utils.permissions import ADMINS, COORDINATORS

api_bp = Blueprint("api", __name__)

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _payload():
    return payload_dict(request.get_json(silent=True))


def _csv_response(buffer, filename):
    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ----------------------------
# FACULTIES
# ----------------------------

@api_bp.route("/faculties", methods=["GET"])
@token_required
def list_faculties():
    return jsonify({"success": True, "data": [f.to_dict() for f in get_all_faculties()]})


@api_bp.route("/faculties", methods=["POST"])
@api_roles_required(*ADMINS)
def create_faculty():
    data = _payload()
    faculty = add_faculty(data.get("name"), data.get("code"), data.get("description"))
    return jsonify({
        "success": True,
        "message": "Faculty created successfully",
        "data": faculty.to_dict()
    }), 201


@api_bp.route("/faculties/<int:faculty_id>", methods=["PUT"])
@api_roles_required(*ADMINS)
def edit_faculty(faculty_id):
    faculty = update_faculty(faculty_id, _payload())
    return jsonify({
        "success": True,
        "message": "Faculty updated successfully",
        "data": faculty.to_dict()
    })


@api_bp.route("/faculties/<int:faculty_id>/departments", methods=["GET"])
@token_required
def faculty_departments(faculty_id):
    departments = get_departments_by_faculty(faculty_id)
    return jsonify({"success": True, "data": [d.to_dict() for d in departments]})


@api_bp.route("/faculties/export", methods=["GET"])
@api_roles_required(*ADMINS)
def export_faculties():
    return _csv_response(get_faculties_as_csv(), "faculties.csv")


# ----------------------------
# DEPARTMENTS
# ----------------------------

@api_bp.route("/departments", methods=["GET"])
@token_required
def list_departments():
    return jsonify({"success": True, "data": [d.to_dict() for d in get_departments()]})


@api_bp.route("/departments", methods=["POST"])
@api_roles_required(*ADMINS)
def create_department():
    data = _payload()
    dept = add_department(
        data.get("name"),
        data.get("facultyId"),
        description=data.get("description"),
        budget=data.get("budget"),
        cost_center=data.get("costCenter"),
        location=data.get("location"),
        phone=data.get("phone"),
        email=data.get("email")
    )
    return jsonify({
        "success": True,
        "message": "Department created successfully",
        "data": dept.to_dict()
    }), 201


@api_bp.route("/departments/<int:dept_id>", methods=["PUT"])
@api_roles_required(*ADMINS)
def edit_department(dept_id):
    dept = update_department(dept_id, _payload())
    return jsonify({
        "success": True,
        "message": "Department updated successfully",
        "data": dept.to_dict()
    })


@api_bp.route("/departments/export", methods=["GET"])
@api_roles_required(*ADMINS)
def export_departments():
    return _csv_response(get_departments_as_csv(), "departments.csv")


# ----------------------------
# MAJORS
# ----------------------------

@api_bp.route("/majors", methods=["GET"])
@token_required
def list_majors():
    department_id = request.args.get("department_id", type=int)
    majors = get_majors(department_id)
    return jsonify({"success": True, "data": [m.to_dict() for m in majors]})


@api_bp.route("/majors", methods=["POST"])
@api_roles_required(*ADMINS)
def create_major():
    data = _payload()
    major = add_major(data.get("name"), data.get("departmentId"), data.get("description"))
    return jsonify({
        "success": True,
        "message": "Major created successfully",
        "data": major.to_dict()
    }), 201


@api_bp.route("/majors/<int:major_id>", methods=["PUT"])
@api_roles_required(*ADMINS)
def edit_major(major_id):
    major = update_major(major_id, _payload())
    return jsonify({
        "success": True,
        "message": "Major updated successfully",
        "data": major.to_dict()
    })


# ----------------------------
# STUDENTS
# ----------------------------

@api_bp.route("/students/register", methods=["POST"])
@api_roles_required(*(ADMINS + COORDINATORS))
def post_register_student():
    student = register_student(_payload())
    return jsonify({
        "success": True,
        "message": "Student registered successfully",
        "data": student.to_dict()
    }), 201


@api_bp.route("/students", methods=["GET"])
@api_roles_required(*STUDENT_RECORD_ROLES)
def list_students():
    students, pagination = get_students(
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", 10, type=int),
        search=request.args.get("search"),
        status=request.args.get("status"),
        faculty_id=request.args.get("faculty_id", type=int)
    )
    return jsonify({
        "success": True,
        "data": [s.to_dict() for s in students],
        "pagination": pagination
    })


@api_bp.route("/students/export", methods=["GET"])
@api_roles_required(*STUDENT_RECORD_ROLES)
def export_students():
    buffer = get_students_as_csv(
        search=request.args.get("search"),
        status=request.args.get("status"),
        faculty_id=request.args.get("faculty_id", type=int)
    )
    return _csv_response(buffer, "students.csv")


def _visible_student(student_id):
    student = get_student(student_id)
    if not can_access_student(g.current_user, student):
        raise AuthorizationError("Insufficient permissions")
    return student


@api_bp.route("/students/<int:student_id>", methods=["GET"])
@token_required
def show_student(student_id):
    return jsonify({"success": True, "data": _visible_student(student_id).to_dict()})


@api_bp.route("/students/<int:student_id>/registration-slip", methods=["GET"])
@token_required
def registration_slip(student_id):
    student = _visible_student(student_id)
    docx_stream = generate_registration_slip(student)

    return send_file(
        docx_stream,
        as_attachment=True,
        download_name=f"{student.matricule}_Registration_Slip.docx",
        mimetype=DOCX_MIMETYPE
    )
