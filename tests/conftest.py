import pytest

from edu_erp import create_app
from edu_erp.config import TestingConfig
from edu_erp.extensions import db
from edu_erp.models import Department, Faculty, Major, User
from edu_erp.services.auth_service import issue_token
from edu_erp.utils.auth_context import SESSION_TOKEN_KEY

PASSWORD = "password123"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    return db.session


@pytest.fixture
def create_user(db_session):
    def _create(email, role="student", password=PASSWORD, first_name="Test", last_name="User",
                is_active=True):
        user = User(
            email=email,
            role=role,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active
        )
        user.set_password(password)
        db_session.add(user)
        db_session.commit()
        return user
    return _create


@pytest.fixture
def admin(create_user):
    return create_user("admin@erp.local", "admin", first_name="System", last_name="Administrator")


@pytest.fixture
def student_user(create_user):
    return create_user("alice.student@erp.local", "student", first_name="Alice", last_name="Williams")


@pytest.fixture
def auth_header():
    def _header(user):
        return {"Authorization": f"Bearer {issue_token(user)}"}
    return _header


@pytest.fixture
def login(client):
    """Sign a user into the browser session of the test client."""
    def _login(user):
        with client.session_transaction() as sess:
            sess[SESSION_TOKEN_KEY] = issue_token(user)
    return _login


@pytest.fixture
def academic_structure(db_session):
    science = Faculty(name="Faculty of Science and Technology", code="FST")
    business = Faculty(name="Faculty of Business", code="FB")
    db_session.add_all([science, business])
    db_session.flush()

    computing = Department(name="Computer Science", faculty_id=science.id, budget=500000)
    management = Department(name="Business Administration", faculty_id=business.id, budget=400000)
    db_session.add_all([computing, management])
    db_session.flush()

    software = Major(name="Software Engineering", department_id=computing.id)
    marketing = Major(name="Marketing", department_id=management.id)
    db_session.add_all([software, marketing])
    db_session.commit()

    return {
        "faculty": science,
        "other_faculty": business,
        "department": computing,
        "other_department": management,
        "major": software,
        "other_major": marketing,
    }
