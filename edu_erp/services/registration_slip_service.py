from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Cm, Pt

from edu_erp.models.base import get_local_time
from edu_erp.models.student import Student

INSTITUTION_NAME = "ICT University"


def _safe_str(x, default="-"):
    return default if x in (None, "") else str(x)


def _setup_document(doc: Document):
    section = doc.sections[0]
    section.top_margin = Cm(1.5)
    section.bottom_margin = Cm(1.5)
    section.left_margin = Cm(2)
    section.right_margin = Cm(2)
    style = doc.styles["Normal"]
    style.font.name = "Times New Roman"
    style.font.size = Pt(12)


def _add_heading(doc: Document, text: str, size: int, bold=True):
    p = doc.add_paragraph()
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = p.add_run(text)
    run.bold = bold
    run.font.size = Pt(size)
    return p


def _student_rows(student: Student):
    emergency = student.emergency_contact or {}
    return [
        ("Matricule", student.matricule),
        ("Full name", student.full_name),
        ("Email", student.email),
        ("Phone", student.phone),
        ("Date of birth", student.date_of_birth.isoformat() if student.date_of_birth else None),
        ("Region of origin", student.region_of_origin),
        ("Faculty", student.faculty.name),
        ("Department", student.department.name),
        ("Major", student.major.name),
        ("Programme", student.degree_level.capitalize()),
        ("Semester", student.semester),
        ("Registration year", student.registration_year),
        ("Emergency contact", emergency.get("name")),
        ("Emergency phone", emergency.get("phoneNumber")),
    ]


def generate_registration_slip(student: Student) -> BytesIO:
    doc = Document()
    _setup_document(doc)

    _add_heading(doc, INSTITUTION_NAME.upper(), 16)
    _add_heading(doc, "STUDENT REGISTRATION SLIP", 13)
    doc.add_paragraph()

    table = doc.add_table(rows=0, cols=2)
    table.style = "Table Grid"
    for label, value in _student_rows(student):
        cells = table.add_row().cells
        cells[0].text = label
        cells[1].text = _safe_str(value)
        cells[0].paragraphs[0].runs[0].bold = True

    doc.add_paragraph()
    issued = doc.add_paragraph(f"Issued on {get_local_time().strftime('%d %B %Y')}")
    issued.alignment = WD_ALIGN_PARAGRAPH.RIGHT

    stream = BytesIO()
    doc.save(stream)
    stream.seek(0)
    return stream
