import csv
import io

import pytest

from edu_erp.errors import NotFoundError
from edu_erp.services.records_service import (
    RECORD_PAGES,
    add_local_record,
    filter_records,
    get_record_page,
    records_as_csv,
    records_for,
)


def test_search_is_case_insensitive_substring():
    page = get_record_page("hr.employees")

    result = filter_records(page.rows, "JOHN", page.search_fields)

    assert [r["employeeId"] for r in result] == ["EMP001", "EMP002"]


def test_search_only_looks_at_search_fields():
    page = get_record_page("finance.invoices")

    assert filter_records(page.rows, "2024-12-31", page.search_fields) == []


def test_status_filter_is_exact():
    page = get_record_page("finance.invoices")

    result = filter_records(page.rows, status="paid")

    assert [r["invoiceNumber"] for r in result] == ["INV-002"]


def test_search_and_status_combine():
    page = get_record_page("hr.leave")

    assert filter_records(page.rows, "sick", page.search_fields, "pending") == []
    assert len(filter_records(page.rows, "sick", page.search_fields, "approved")) == 1


def test_students_see_their_own_record_set():
    page = get_record_page("academic.grades")

    staff_rows = records_for(page, "lecturer")
    student_rows = records_for(page, "student")

    assert all("studentName" in r for r in staff_rows)
    assert all("studentName" not in r for r in student_rows)


def test_local_records_are_appended():
    page = get_record_page("hr.assets")
    store = {}

    record = add_local_record(page, store, {"name": "Projector", "type": "AV", "serialNumber": "PJ01", "value": ""})

    assert record == {"id": 3, "name": "Projector", "type": "AV", "serialNumber": "PJ01", "status": "available"}
    assert records_for(page, "hr_staff", store)[-1]["name"] == "Projector"
    # Sample data is untouched
    assert len(page.rows) == 2


def test_local_record_ids_keep_increasing():
    page = get_record_page("finance.payments")
    store = {}

    first = add_local_record(page, store, {"studentName": "A", "amount": "1", "method": "Cash"})
    second = add_local_record(page, store, {"studentName": "B", "amount": "2", "method": "Cash"})

    assert (first["id"], second["id"]) == (2, 3)


def test_unknown_page():
    with pytest.raises(NotFoundError):
        get_record_page("finance.nothing")


def test_every_page_searches_known_columns():
    for page in RECORD_PAGES.values():
        assert page.search_fields, page.key
        for field in page.form_fields:
            assert field.label


def test_csv_export_uses_column_labels():
    page = get_record_page("finance.budgets")

    rows = list(csv.reader(io.StringIO(records_as_csv(page, page.rows).getvalue())))

    assert rows[0] == ["Budget", "Category", "Allocated", "Spent", "Remaining", "Status"]
    assert rows[1][0] == "Academic Year 2024"
    assert len(rows) == 4


def test_page_csv_download(client, create_user, login):
    login(create_user("hr@erp.local", "hr_staff"))

    response = client.get("/hr/employees?search=sarah&format=csv")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "attachment" in response.headers["Content-Disposition"]
    lines = response.get_data(as_text=True).strip().splitlines()
    assert len(lines) == 2
    assert "Sarah Johnson" in lines[1]


def test_student_cannot_add_records(client, student_user, login):
    login(student_user)

    response = client.get("/academic/courses")

    assert response.status_code == 200
    assert b"Add Courses" not in response.data
