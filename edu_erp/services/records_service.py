"""
Tabular data behind the Academic, Finance and HR pages.

The records are static samples; rows added from a page's form live only in
the caller's session and are never written to the database.
"""
from dataclasses import dataclass
from io import StringIO

import pandas as pd

from edu_erp.errors import NotFoundError
from edu_erp.utils.forms import FormField

LOCAL_RECORDS_KEY = "local_records"


@dataclass(frozen=True)
class RecordPage:
    key: str
    title: str
    columns: tuple
    rows: tuple
    search_fields: tuple
    form_fields: tuple = ()
    student_rows: tuple = None
    statuses: tuple = ()
    default_status: str = None

    def column_labels(self):
        return [label for _, label in self.columns]


# ----------------------------
# SAMPLE DATA
# ----------------------------

COURSES = (
    {"id": 1, "code": "CS101", "name": "JavaScript Essentials", "instructor": "David Wallace",
     "department": "Computer Science", "credits": 3, "semester": "Fall", "status": "active"},
    {"id": 2, "code": "LANG201", "name": "Web Systems Integration", "instructor": "John Doe",
     "department": "Languages", "credits": 4, "semester": "Fall", "status": "active"},
    {"id": 3, "code": "MATH201", "name": "Calculus II", "instructor": "Prof. Johnson",
     "department": "Mathematics", "credits": 4, "semester": "Spring", "status": "active"},
)

STAFF_GRADES = (
    {"id": 1, "studentName": "John Doe", "studentId": "STU001", "courseCode": "CS101",
     "courseName": "Introduction to Programming", "assignments": 85, "ca": 78, "exam": 82,
     "total": 81.5, "grade": "A-"},
    {"id": 2, "studentName": "Jane Smith", "studentId": "STU002", "courseCode": "CS101",
     "courseName": "Introduction to Programming", "assignments": 92, "ca": 88, "exam": 85,
     "total": 88.3, "grade": "A"},
)

STUDENT_GRADES = (
    {"id": 1, "courseCode": "CS101", "courseName": "Introduction to Programming",
     "assignments": 85, "ca": 78, "exam": 82, "total": 81.5, "grade": "A-", "semester": "Fall 2024"},
    {"id": 2, "courseCode": "MATH201", "courseName": "Calculus II",
     "assignments": 92, "ca": 88, "exam": 85, "total": 88.3, "grade": "A", "semester": "Fall 2024"},
)

STAFF_ATTENDANCE = (
    {"id": 1, "studentName": "John Doe", "studentId": "STU001", "courseCode": "CS101",
     "date": "2024-12-20", "time": "09:00 AM", "status": "present"},
    {"id": 2, "studentName": "Jane Smith", "studentId": "STU002", "courseCode": "CS101",
     "date": "2024-12-20", "time": "09:00 AM", "status": "absent"},
    {"id": 3, "studentName": "Mike Johnson", "studentId": "STU003", "courseCode": "CS101",
     "date": "2024-12-20", "time": "09:00 AM", "status": "late"},
)

STUDENT_ATTENDANCE = (
    {"id": 1, "courseCode": "CS101", "date": "2024-12-20", "time": "09:00 AM",
     "lecturer": "Dr. Smith", "status": "present"},
    {"id": 2, "courseCode": "MATH201", "date": "2024-12-20", "time": "11:00 AM",
     "lecturer": "Prof. Johnson", "status": "absent"},
    {"id": 3, "courseCode": "CS101", "date": "2024-12-19", "time": "09:00 AM",
     "lecturer": "Dr. Smith", "status": "present"},
)

INVOICES = (
    {"id": 1, "invoiceNumber": "INV-001", "studentName": "John Doe", "amount": 5000,
     "dueDate": "2024-12-31", "status": "pending"},
    {"id": 2, "invoiceNumber": "INV-002", "studentName": "Jane Smith", "amount": 4500,
     "dueDate": "2024-12-25", "status": "paid"},
)

PAYMENTS = (
    {"id": 1, "studentName": "Jane Smith", "amount": 4500, "date": "2024-12-20",
     "method": "Credit Card", "status": "completed"},
)

BUDGETS = (
    {"id": 1, "name": "Academic Year 2024", "category": "Operations",
     "allocated": 100000, "spent": 65000, "remaining": 35000, "status": "active"},
    {"id": 2, "name": "Infrastructure Budget", "category": "Infrastructure",
     "allocated": 75000, "spent": 32000, "remaining": 43000, "status": "active"},
    {"id": 3, "name": "Marketing Budget", "category": "Marketing",
     "allocated": 25000, "spent": 18500, "remaining": 6500, "status": "active"},
)

EMPLOYEES = (
    {"id": 1, "employeeId": "EMP001", "name": "Dr. John Smith", "department": "Computer Science",
     "position": "Professor", "email": "john.smith@university.edu", "hireDate": "2020-01-15",
     "salary": 85000, "status": "active"},
    {"id": 2, "employeeId": "EMP002", "name": "Sarah Johnson", "department": "Administration",
     "position": "HR Manager", "email": "sarah.johnson@university.edu", "hireDate": "2019-03-20",
     "salary": 65000, "status": "active"},
)

PAYROLL = (
    {"id": 1, "employeeId": "EMP001", "employeeName": "Dr. John Smith", "period": "December 2024",
     "baseSalary": 7083.33, "deductions": 850, "bonuses": 500, "netPay": 6733.33,
     "status": "processed"},
)

LEAVE_REQUESTS = (
    {"id": 1, "employeeName": "Dr. John Smith", "leaveType": "Annual Leave",
     "startDate": "2024-12-25", "endDate": "2024-12-30", "days": 5,
     "reason": "Christmas vacation", "status": "pending"},
    {"id": 2, "employeeName": "Sarah Johnson", "leaveType": "Sick Leave",
     "startDate": "2024-12-18", "endDate": "2024-12-19", "days": 2,
     "reason": "Medical appointment", "status": "approved"},
)

ASSETS = (
    {"id": 1, "name": 'MacBook Pro 16"', "type": "Laptop", "serialNumber": "MBP2024001",
     "assignedTo": "Dr. John Smith", "value": 2500, "status": "assigned"},
    {"id": 2, "name": 'Dell Monitor 27"', "type": "Monitor", "serialNumber": "DM27001",
     "assignedTo": None, "value": 350, "status": "available"},
)


# ----------------------------
# PAGES
# ----------------------------

RECORD_PAGES = {
    page.key: page for page in (
        RecordPage(
            key="academic.courses",
            title="Courses",
            columns=(("code", "Code"), ("name", "Course"), ("instructor", "Instructor"),
                     ("department", "Department"), ("credits", "Credits"),
                     ("semester", "Semester"), ("status", "Status")),
            rows=COURSES,
            search_fields=("code", "name", "instructor"),
            form_fields=(
                FormField("code", "Course Code", required=True),
                FormField("name", "Course Name", required=True),
                FormField("instructor", "Instructor", required=True),
                FormField("department", "Department"),
                FormField("credits", "Credits", type="number"),
                FormField("semester", "Semester", type="select",
                          options=(("Fall", "Fall"), ("Spring", "Spring"))),
            ),
            statuses=("active", "inactive"),
            default_status="active",
        ),
        RecordPage(
            key="academic.grades",
            title="Grades",
            columns=(("studentName", "Student"), ("courseCode", "Course"), ("assignments", "Assignments"),
                     ("ca", "CA"), ("exam", "Exam"), ("total", "Total"), ("grade", "Grade")),
            rows=STAFF_GRADES,
            student_rows=STUDENT_GRADES,
            search_fields=("studentName", "studentId", "courseCode", "courseName"),
            form_fields=(
                FormField("studentName", "Student Name", required=True),
                FormField("courseCode", "Course Code", required=True),
                FormField("total", "Total", type="number", required=True),
                FormField("grade", "Grade"),
            ),
        ),
        RecordPage(
            key="academic.attendance",
            title="Attendance",
            columns=(("studentName", "Student"), ("courseCode", "Course"), ("date", "Date"),
                     ("time", "Time"), ("status", "Status")),
            rows=STAFF_ATTENDANCE,
            student_rows=STUDENT_ATTENDANCE,
            search_fields=("studentName", "studentId", "courseCode"),
            form_fields=(
                FormField("studentName", "Student Name", required=True),
                FormField("courseCode", "Course Code", required=True),
                FormField("date", "Date", type="date", required=True),
                FormField("status", "Status", type="select", required=True,
                          options=(("present", "Present"), ("absent", "Absent"), ("late", "Late"))),
            ),
            statuses=("present", "absent", "late"),
        ),
        RecordPage(
            key="finance.invoices",
            title="Invoices",
            columns=(("invoiceNumber", "Invoice"), ("studentName", "Student"), ("amount", "Amount"),
                     ("dueDate", "Due Date"), ("status", "Status")),
            rows=INVOICES,
            search_fields=("invoiceNumber", "studentName"),
            form_fields=(
                FormField("studentName", "Student Name", required=True),
                FormField("amount", "Amount", type="number", required=True),
                FormField("dueDate", "Due Date", type="date", required=True),
            ),
            statuses=("pending", "paid", "overdue"),
            default_status="pending",
        ),
        RecordPage(
            key="finance.payments",
            title="Payments",
            columns=(("studentName", "Student"), ("amount", "Amount"), ("date", "Date"),
                     ("method", "Method"), ("status", "Status")),
            rows=PAYMENTS,
            search_fields=("studentName", "method"),
            form_fields=(
                FormField("studentName", "Student Name", required=True),
                FormField("amount", "Amount", type="number", required=True),
                FormField("method", "Method", type="select", required=True,
                          options=(("Credit Card", "Credit Card"), ("Bank Transfer", "Bank Transfer"),
                                   ("Mobile Money", "Mobile Money"), ("Cash", "Cash"))),
            ),
            statuses=("completed", "pending", "failed"),
            default_status="completed",
        ),
        RecordPage(
            key="finance.budgets",
            title="Budgets",
            columns=(("name", "Budget"), ("category", "Category"), ("allocated", "Allocated"),
                     ("spent", "Spent"), ("remaining", "Remaining"), ("status", "Status")),
            rows=BUDGETS,
            search_fields=("name", "category"),
            form_fields=(
                FormField("name", "Budget Name", required=True),
                FormField("category", "Category", required=True),
                FormField("allocated", "Allocated Amount", type="number", required=True),
            ),
            statuses=("active", "closed"),
            default_status="active",
        ),
        RecordPage(
            key="hr.employees",
            title="Employees",
            columns=(("employeeId", "ID"), ("name", "Name"), ("department", "Department"),
                     ("position", "Position"), ("email", "Email"), ("status", "Status")),
            rows=EMPLOYEES,
            search_fields=("employeeId", "name", "department", "position", "email"),
            form_fields=(
                FormField("name", "Full Name", required=True),
                FormField("email", "Email", type="email", required=True),
                FormField("department", "Department", required=True),
                FormField("position", "Position", required=True),
                FormField("salary", "Salary", type="number"),
            ),
            statuses=("active", "inactive"),
            default_status="active",
        ),
        RecordPage(
            key="hr.payroll",
            title="Payroll",
            columns=(("employeeName", "Employee"), ("period", "Period"), ("baseSalary", "Base Salary"),
                     ("deductions", "Deductions"), ("bonuses", "Bonuses"), ("netPay", "Net Pay"),
                     ("status", "Status")),
            rows=PAYROLL,
            search_fields=("employeeName", "employeeId", "period"),
            statuses=("processed", "pending"),
        ),
        RecordPage(
            key="hr.leave",
            title="Leave Requests",
            columns=(("employeeName", "Employee"), ("leaveType", "Type"), ("startDate", "From"),
                     ("endDate", "To"), ("days", "Days"), ("reason", "Reason"), ("status", "Status")),
            rows=LEAVE_REQUESTS,
            search_fields=("employeeName", "leaveType", "reason"),
            form_fields=(
                FormField("leaveType", "Leave Type", type="select", required=True,
                          options=(("Annual Leave", "Annual Leave"), ("Sick Leave", "Sick Leave"),
                                   ("Personal Leave", "Personal Leave"))),
                FormField("startDate", "Start Date", type="date", required=True),
                FormField("endDate", "End Date", type="date", required=True),
                FormField("reason", "Reason", type="textarea"),
            ),
            statuses=("pending", "approved", "rejected"),
            default_status="pending",
        ),
        RecordPage(
            key="hr.assets",
            title="Assets",
            columns=(("name", "Asset"), ("type", "Type"), ("serialNumber", "Serial Number"),
                     ("assignedTo", "Assigned To"), ("value", "Value"), ("status", "Status")),
            rows=ASSETS,
            search_fields=("name", "type", "serialNumber", "assignedTo"),
            form_fields=(
                FormField("name", "Asset Name", required=True),
                FormField("type", "Type", required=True),
                FormField("serialNumber", "Serial Number", required=True),
                FormField("value", "Value", type="number"),
            ),
            statuses=("assigned", "available", "maintenance"),
            default_status="available",
        ),
    )
}


def get_record_page(key: str) -> RecordPage:
    try:
        return RECORD_PAGES[key]
    except KeyError:
        raise NotFoundError(f"Unknown page: {key}")


# ----------------------------
# READ / FILTER
# ----------------------------

def filter_records(records, search=None, search_fields=(), status=None):
    """Case-insensitive substring search over search_fields plus an exact status match."""
    term = (search or "").strip().lower()
    result = []
    for record in records:
        if status and record.get("status") != status:
            continue
        if term and not any(
            term in str(record.get(f) or "").lower() for f in search_fields
        ):
            continue
        result.append(record)
    return result


def records_for(page: RecordPage, role: str, local_store: dict = None):
    base = page.student_rows if role == "student" and page.student_rows is not None else page.rows
    local = (local_store or {}).get(page.key, [])
    return [dict(r) for r in base] + [dict(r) for r in local]


# ----------------------------
# LOCAL ADDITIONS
# ----------------------------

def add_local_record(page: RecordPage, local_store: dict, form_data: dict) -> dict:
    """Append a row to the session-local store for this page and return it."""
    existing = list(page.rows) + list(local_store.get(page.key, []))
    next_id = max((r["id"] for r in existing), default=0) + 1

    record = {"id": next_id}
    record.update({k: v for k, v in form_data.items() if v not in (None, "")})
    if page.default_status and "status" not in record:
        record["status"] = page.default_status

    local_store.setdefault(page.key, []).append(record)
    return record


# ----------------------------
# CSV EXPORT
# ----------------------------

def records_as_csv(page: RecordPage, records):
    data = [
        {label: record.get(name, "") for name, label in page.columns}
        for record in records
    ]

    df = pd.DataFrame(data, columns=page.column_labels())
    buffer = StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    return buffer
