"""
Development data seeding.

Phases run one after the other, each committed on its own, so a failure
leaves earlier phases in place. Every insert is conflict-safe and re-running
the seed adds nothing new.
"""
import logging
from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import and_, exists, func, inspect, literal, select
from sqlalchemy.dialects import postgresql, sqlite
from werkzeug.security import generate_password_hash

from edu_erp.extensions import db
from edu_erp.models import Department, Faculty, Major, Student, User
from edu_erp.models.base import get_local_time

logger = logging.getLogger(__name__)

SEED_USERS = (
    ("admin@erp.local", "System", "Administrator", "admin"),
    ("lecturer@erp.local", "John", "Smith", "lecturer"),
    ("alice.student@erp.local", "Alice", "Williams", "student"),
    ("bob.student@erp.local", "Bob", "Brown", "student"),
    ("finance@erp.local", "Finance", "Manager", "finance_staff"),
    ("hr@erp.local", "HR", "Manager", "hr_staff"),
)

SEED_FACULTIES = (
    ("Faculty of Science and Technology", "Science and technology disciplines"),
    ("Faculty of Business", "Business and management studies"),
)

SEED_DEPARTMENTS = (
    {
        "faculty": "Faculty of Science and Technology",
        "name": "Computer Science",
        "description": "Computer Science Department",
        "budget": Decimal("500000.00"),
        "cost_center": "CS001",
        "location": "Building A",
        "phone": "+237-123-4567",
        "email": "cs@erp.local",
    },
    {
        "faculty": "Faculty of Business",
        "name": "Business Administration",
        "description": "Business Administration Department",
        "budget": Decimal("400000.00"),
        "cost_center": "BA001",
        "location": "Building B",
        "phone": "+237-123-4568",
        "email": "ba@erp.local",
    },
)

SEED_MAJORS = (
    ("Computer Science", "Software Engineering", "Software development and engineering"),
    ("Business Administration", "Marketing", "Marketing and sales management"),
)

SEED_STUDENTS = (
    {
        "matricule": "CS2025001",
        "user_email": "alice.student@erp.local",
        "first_name": "Alice",
        "last_name": "Williams",
        "phone": "+237-111-1111",
        "faculty": "Faculty of Science and Technology",
        "department": "Computer Science",
        "major": "Software Engineering",
        "semester": 2,
        "level": 2,
        "enrollment_date": date(2023, 9, 1),
        "gpa": Decimal("3.80"),
        "total_credits": 65,
    },
    {
        "matricule": "BA2025001",
        "user_email": "bob.student@erp.local",
        "first_name": "Bob",
        "last_name": "Brown",
        "phone": "+237-111-1112",
        "faculty": "Faculty of Business",
        "department": "Business Administration",
        "major": "Marketing",
        "semester": 1,
        "level": 1,
        "enrollment_date": date(2024, 9, 1),
        "gpa": Decimal("3.50"),
        "total_credits": 32,
    },
)

SEED_REGISTRATION_YEAR = 2025


def _insert(table):
    dialect = db.engine.dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise RuntimeError(f"Seeding is not supported on the {dialect} dialect")


def _timestamps(now):
    return literal(now, db.DateTime).label("created_at"), literal(now, db.DateTime).label("updated_at")


# ----------------------------
# PHASES
# ----------------------------

def check_schema():
    inspector = inspect(db.engine)
    missing = [
        model.__tablename__
        for model in (User, Faculty, Department, Major, Student)
        if not inspector.has_table(model.__tablename__)
    ]
    if missing:
        raise RuntimeError(
            f"Database tables are missing ({', '.join(missing)}). Create them with "
            "`flask --app run init-db` or the Flask-Migrate `db init`, `db migrate` and "
            "`db upgrade` commands before seeding"
        )


def seed_users(password):
    now = get_local_time()
    hashed = generate_password_hash(password)

    rows = [
        {
            "email": email,
            "password": hashed,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        for email, first_name, last_name, role in SEED_USERS
    ]

    stmt = _insert(User.__table__).values(rows).on_conflict_do_nothing(index_elements=["email"])
    db.session.execute(stmt)
    db.session.commit()
    logger.info("Phase 1: users seeded")


def seed_faculties():
    now = get_local_time()
    rows = [
        {"name": name, "description": description, "created_at": now, "updated_at": now}
        for name, description in SEED_FACULTIES
    ]

    stmt = _insert(Faculty.__table__).values(rows).on_conflict_do_nothing(index_elements=["name"])
    db.session.execute(stmt)
    db.session.commit()
    logger.info("Phase 2: faculties seeded")


def seed_departments():
    faculties = Faculty.__table__
    departments = Department.__table__
    now = get_local_time()

    for row in SEED_DEPARTMENTS:
        already_there = exists().where(and_(
            departments.c.name == row["name"],
            departments.c.faculty_id == faculties.c.id,
        ))
        source = select(
            literal(row["name"]),
            literal(row["description"]),
            faculties.c.id,
            literal(row["budget"], db.Numeric(12, 2)),
            literal(row["cost_center"]),
            literal(row["location"]),
            literal(row["phone"]),
            literal(row["email"]),
            literal(True, db.Boolean),
            *_timestamps(now)
        ).where(faculties.c.name == row["faculty"], ~already_there)

        stmt = departments.insert().from_select(
            ["name", "description", "faculty_id", "budget", "cost_center", "location",
             "phone", "email", "is_active", "created_at", "updated_at"],
            source
        )
        db.session.execute(stmt)

    db.session.commit()
    logger.info("Phase 3: departments seeded")


def seed_majors():
    departments = Department.__table__
    majors = Major.__table__
    now = get_local_time()

    for department_name, name, description in SEED_MAJORS:
        already_there = exists().where(and_(
            majors.c.name == name,
            majors.c.department_id == departments.c.id,
        ))
        source = select(
            literal(name),
            literal(description),
            departments.c.id,
            *_timestamps(now)
        ).where(departments.c.name == department_name, ~already_there)

        stmt = majors.insert().from_select(
            ["name", "description", "department_id", "created_at", "updated_at"],
            source
        )
        db.session.execute(stmt)

    db.session.commit()
    logger.info("Phase 4: majors seeded")


def seed_students():
    users = User.__table__
    faculties = Faculty.__table__
    departments = Department.__table__
    majors = Major.__table__
    now = get_local_time()

    for row in SEED_STUDENTS:
        source = select(
            literal(row["matricule"]),
            users.c.id,
            literal(row["first_name"]),
            literal(row["last_name"]),
            users.c.email,
            literal(row["phone"]),
            faculties.c.id,
            departments.c.id,
            majors.c.id,
            literal(row["semester"]),
            literal(row["level"]),
            literal("undergraduate"),
            literal("regular"),
            literal(row["enrollment_date"], db.Date),
            literal(SEED_REGISTRATION_YEAR),
            literal("active"),
            literal(row["gpa"], db.Numeric(3, 2)),
            literal(row["total_credits"]),
            *_timestamps(now)
        ).where(
            users.c.email == row["user_email"],
            faculties.c.name == row["faculty"],
            departments.c.name == row["department"],
            departments.c.faculty_id == faculties.c.id,
            majors.c.name == row["major"],
            majors.c.department_id == departments.c.id,
        )

        stmt = _insert(Student.__table__).from_select(
            ["matricule", "user_id", "first_name", "last_name", "email", "phone",
             "faculty_id", "department_id", "major_id", "semester", "level",
             "degree_level", "student_type", "enrollment_date", "registration_year",
             "status", "gpa", "total_credits", "created_at", "updated_at"],
            source
        ).on_conflict_do_nothing(index_elements=["matricule"])
        db.session.execute(stmt)

    db.session.commit()
    logger.info("Phase 5: students seeded")


def verify_counts():
    counts = {}
    for model in (User, Faculty, Department, Major, Student):
        table = model.__table__
        counts[table.name] = db.session.execute(select(func.count()).select_from(table)).scalar()

    logger.info(
        "Phase 6: verification: %s",
        ", ".join(f"{name}={count}" for name, count in counts.items())
    )
    return counts


# ----------------------------
# ENTRY POINT
# ----------------------------

def run_seed(password=None):
    """Seed the development data and return the row count per table."""
    password = password or current_app.config["SEED_PASSWORD"]
    logger.info("Starting basic data seeding on %s", db.engine.url.render_as_string(hide_password=True))

    try:
        check_schema()
        seed_users(password)
        seed_faculties()
        seed_departments()
        seed_majors()
        seed_students()
        counts = verify_counts()
    except Exception:
        db.session.rollback()
        logger.exception("Seeding failed")
        raise

    logger.info("Basic data seeding completed")
    return counts
