import logging

from flask import Blueprint, Response, flash, redirect, render_template, request, session, url_for

from edu_erp.models.campaign import CAMPAIGN_STATUSES
from edu_erp.models.student import STUDENT_STATUSES
from edu_erp.services.auth_service import change_password, update_profile
from edu_erp.services.campaign_service import create_campaign, get_campaign_roi_report
from edu_erp.services.department_service import get_departments
from edu_erp.services.faculty_service import get_all_faculties
from edu_erp.services.major_service import get_majors
from edu_erp.services.records_service import (
    LOCAL_RECORDS_KEY,
    add_local_record,
    filter_records,
    get_record_page,
    records_as_csv,
    records_for,
)
from edu_erp.services.student_service import (
    DEGREE_LEVELS,
    GENDERS,
    REGIONS,
    STUDENT_TYPES,
    get_students,
    get_students_as_csv,
    register_student,
)
from edu_erp.utils.auth_context import current_auth
from edu_erp.utils.decorators import login_required, role_required
from edu_erp.utils.forms import FormDialog, FormField
from edu_erp.utils.permissions import allowed_roles, navigation_for

logger = logging.getLogger(__name__)

pages_bp = Blueprint("pages", __name__)

FORM_DRAFTS_KEY = "form_drafts"

RECORD_PATHS = {
    "/academic/courses": "academic.courses",
    "/academic/grades": "academic.grades",
    "/academic/attendance": "academic.attendance",
    "/finance/invoices": "finance.invoices",
    "/finance/payments": "finance.payments",
    "/finance/budgets": "finance.budgets",
    "/hr/employees": "hr.employees",
    "/hr/payroll": "hr.payroll",
    "/hr/leave": "hr.leave",
    "/hr/assets": "hr.assets",
}

CAMPAIGN_FORM = (
    FormField("name", "Campaign Name", required=True),
    FormField("channel", "Channel"),
    FormField("budget", "Budget", type="number", required=True),
    FormField("startDate", "Start Date", type="date"),
    FormField("endDate", "End Date", type="date"),
    FormField("status", "Status", type="select",
              options=tuple((s, s.capitalize()) for s in CAMPAIGN_STATUSES)),
    FormField("description", "Description", type="textarea"),
)


def _csv_response(buffer, filename):
    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ----------------------------
# FORM DRAFTS
# ----------------------------

def _draft(form_key):
    return session.get(FORM_DRAFTS_KEY, {}).get(form_key)


def _store_draft(form_key, form_data):
    drafts = session.get(FORM_DRAFTS_KEY, {})
    if form_data:
        drafts[form_key] = form_data
    else:
        drafts.pop(form_key, None)
    session[FORM_DRAFTS_KEY] = drafts


def _handle_dialog(form_key, fields, on_save, success_message):
    """
    Run a posted dialog action.
    Returns True when the dialog closed; a refused submit keeps its draft.
    """
    form_data = {f.name: request.form.get(f.name, "").strip() for f in fields}
    dialog = FormDialog(fields, on_save, form_data)

    if request.form.get("action") == "cancel":
        dialog.cancel()
        _store_draft(form_key, dialog.form_data)
        return True

    try:
        dialog.submit()
    except ValueError as e:
        # FormValidationError or a service error from on_save
        flash(str(e), "danger")
        _store_draft(form_key, dialog.form_data)
        return False

    _store_draft(form_key, dialog.form_data)
    flash(success_message, "success")
    return True


# ----------------------------
# GENERAL
# ----------------------------

@pages_bp.route("/dashboard")
@login_required
def dashboard():
    user = current_auth().user
    stats = {}

    if user.role in allowed_roles("/academic/students"):
        _, pagination = get_students(limit=1)
        stats["Students"] = pagination["total"]
        stats["Faculties"] = len(get_all_faculties())
        stats["Departments"] = len(get_departments())

    if user.role in allowed_roles("/finance/campaigns"):
        totals = get_campaign_roi_report()["totals"]
        stats["Campaign Spend"] = totals["spent"]
        stats["Campaign Leads"] = totals["leads"]

    return render_template("dashboard.html", user=user, navigation=navigation_for(user.role), stats=stats)


@pages_bp.route("/profile", methods=["GET", "POST"])
@login_required
def profile():
    user = current_auth().user

    if request.method == "POST":
        try:
            if request.form.get("action") == "password":
                change_password(
                    user,
                    request.form.get("current_password"),
                    request.form.get("new_password")
                )
                flash("Password changed successfully", "success")
            else:
                update_profile(user, {
                    "firstName": request.form.get("first_name"),
                    "lastName": request.form.get("last_name"),
                })
                flash("Profile updated successfully", "success")
        except ValueError as e:
            flash(str(e), "danger")

        return redirect(url_for("pages.profile"))

    return render_template("profile.html", user=user, navigation=navigation_for(user.role))


# ----------------------------
# RECORD PAGES
# ----------------------------

def _record_page_view(path, key):
    @role_required(*allowed_roles(path))
    def view():
        page = get_record_page(key)
        user = current_auth().user
        can_add = bool(page.form_fields) and user.role != "student"

        if request.method == "POST" and can_add:
            local_store = session.get(LOCAL_RECORDS_KEY, {})

            def save(form_data):
                record = add_local_record(page, local_store, form_data)
                session[LOCAL_RECORDS_KEY] = local_store
                logger.info("Session record %s added to %s by user %s", record["id"], key, user.id)
                return record

            closed = _handle_dialog(key, page.form_fields, save, f"{page.title} record added")
            if closed:
                return redirect(path)
            return redirect(f"{path}?form=open")

        search = request.args.get("search", "")
        status = request.args.get("status", "")

        records = records_for(page, user.role, session.get(LOCAL_RECORDS_KEY))
        records = filter_records(records, search, page.search_fields, status)

        if request.args.get("format") == "csv":
            return _csv_response(records_as_csv(page, records), f"{key.replace('.', '_')}.csv")

        return render_template(
            "records.html",
            page=page,
            records=records,
            search=search,
            status=status,
            can_add=can_add,
            form_open=request.args.get("form") == "open",
            draft=_draft(key) or {},
            navigation=navigation_for(user.role)
        )

    view.__name__ = f"records_{key.replace('.', '_')}"
    return view


for _path, _key in RECORD_PATHS.items():
    pages_bp.add_url_rule(_path, view_func=_record_page_view(_path, _key), methods=["GET", "POST"])


# ----------------------------
# STUDENTS
# ----------------------------

@pages_bp.route("/academic/students")
@role_required(*allowed_roles("/academic/students"))
def students():
    user = current_auth().user
    search = request.args.get("search", "")
    status = request.args.get("status", "")
    faculty_id = request.args.get("faculty_id", type=int)

    try:
        if request.args.get("format") == "csv":
            return _csv_response(get_students_as_csv(search, status, faculty_id), "students.csv")

        student_list, pagination = get_students(
            page=request.args.get("page", 1, type=int),
            search=search,
            status=status,
            faculty_id=faculty_id
        )
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("pages.students"))

    return render_template(
        "students.html",
        students=student_list,
        pagination=pagination,
        search=search,
        status=status,
        faculty_id=faculty_id,
        statuses=STUDENT_STATUSES,
        faculties=get_all_faculties(),
        navigation=navigation_for(user.role)
    )


def _registration_options():
    return {
        "gender": [(gender, gender) for gender in GENDERS],
        "region": [(r, r) for r in REGIONS],
        "faculty": [(f.id, f.name) for f in get_all_faculties()],
        "department": [(d.id, f"{d.name} ({d.faculty.name})") for d in get_departments()],
        "major": [(m.id, f"{m.name} ({m.department.name})") for m in get_majors()],
        "level": [(level, level.capitalize()) for level in DEGREE_LEVELS],
        "student_type": [(t, t.capitalize()) for t in STUDENT_TYPES],
    }


@pages_bp.route("/academic/register", methods=["GET", "POST"])
@role_required(*allowed_roles("/academic/register"))
def register():
    user = current_auth().user
    errors = {}
    form = {}

    if request.method == "POST":
        form = request.form.to_dict()
        data = dict(form)
        data["emergencyContact"] = {
            "name": form.get("emergencyContactName"),
            "phoneNumber": form.get("emergencyContactPhone"),
            "relationship": form.get("emergencyContactRelationship"),
        }
        data["address"] = {
            "street": form.get("addressStreet"),
            "city": form.get("addressCity"),
        }

        try:
            student = register_student(data)
        except ValueError as e:
            flash(str(e), "danger")
            errors = getattr(e, "errors", None) or {}
        else:
            flash(f"Student registered with matricule {student.matricule}", "success")
            return redirect(url_for("pages.students"))

    return render_template(
        "register_student.html",
        form=form,
        errors=errors,
        options=_registration_options(),
        navigation=navigation_for(user.role)
    )


# ----------------------------
# CAMPAIGNS
# ----------------------------

@pages_bp.route("/finance/campaigns", methods=["GET", "POST"])
@role_required(*allowed_roles("/finance/campaigns"))
def campaigns():
    user = current_auth().user

    if request.method == "POST":
        closed = _handle_dialog(
            "finance.campaigns",
            CAMPAIGN_FORM,
            lambda form_data: create_campaign(form_data, created_by=user.id),
            "Campaign created"
        )
        if closed:
            return redirect(url_for("pages.campaigns"))
        return redirect(url_for("pages.campaigns", form="open"))

    report = get_campaign_roi_report()
    return render_template(
        "campaigns.html",
        report=report,
        fields=CAMPAIGN_FORM,
        form_open=request.args.get("form") == "open",
        draft=_draft("finance.campaigns") or {},
        navigation=navigation_for(user.role)
    )
