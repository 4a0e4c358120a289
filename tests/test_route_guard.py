from types import SimpleNamespace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from edu_erp.utils import auth_context
from edu_erp.utils.auth_context import (
    ALLOW,
    LOADING,
    REDIRECT,
    SESSION_TOKEN_KEY,
    AuthState,
    resolve_public_access,
    resolve_route_access,
)

PASSWORD = "password123"


def _signed_in(role):
    return AuthState(user=SimpleNamespace(id=1, role=role), token="token")


# ----------------------------
# DECISIONS
# ----------------------------

def test_anonymous_user_is_sent_to_login():
    decision = resolve_route_access(AuthState())

    assert decision.action == REDIRECT
    assert decision.target == "/login"


def test_role_outside_required_roles_is_sent_to_dashboard():
    decision = resolve_route_access(_signed_in("student"), ("admin", "finance_staff"))

    assert decision.action == REDIRECT
    assert decision.target == "/dashboard"


def test_allowed_role_passes():
    assert resolve_route_access(_signed_in("finance_staff"), ("admin", "finance_staff")).action == ALLOW


def test_no_required_roles_only_needs_a_user():
    assert resolve_route_access(_signed_in("employee")).action == ALLOW


def test_admin_is_not_implicitly_allowed():
    decision = resolve_route_access(_signed_in("admin"), ("hr_staff",))

    assert decision.target == "/dashboard"


@pytest.mark.parametrize("resolve", [resolve_route_access, resolve_public_access])
def test_loading_state_wins_over_everything(resolve):
    assert resolve(AuthState(loading=True)).action == LOADING


def test_public_pages_send_signed_in_users_to_dashboard():
    decision = resolve_public_access(_signed_in("lecturer"))

    assert decision.action == REDIRECT
    assert decision.target == "/dashboard"
    assert resolve_public_access(AuthState()).action == ALLOW


# ----------------------------
# PAGES
# ----------------------------

def test_protected_page_redirects_to_login(client):
    response = client.get("/dashboard")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")


def test_login_form_signs_in(client, student_user):
    response = client.post("/login", data={"email": student_user.email, "password": PASSWORD})

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard")
    with client.session_transaction() as sess:
        assert sess.get(SESSION_TOKEN_KEY)


def test_login_form_rejects_bad_password(client, student_user):
    response = client.post(
        "/login",
        data={"email": student_user.email, "password": "wrong"},
        follow_redirects=True
    )

    assert b"Invalid email or password" in response.data


def test_login_page_redirects_signed_in_user(client, student_user, login):
    login(student_user)

    response = client.get("/login")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard")


def test_wrong_role_is_redirected_to_dashboard(client, student_user, login):
    login(student_user)

    response = client.get("/finance/invoices")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard")


def test_allowed_role_sees_page(client, create_user, login):
    login(create_user("finance@erp.local", "finance_staff"))

    response = client.get("/finance/invoices")

    assert response.status_code == 200
    assert b"INV-001" in response.data


def test_invalid_session_token_is_dropped(client):
    with client.session_transaction() as sess:
        sess[SESSION_TOKEN_KEY] = "garbage"

    response = client.get("/dashboard")

    assert response.headers["Location"].endswith("/login")
    with client.session_transaction() as sess:
        assert SESSION_TOKEN_KEY not in sess


def test_database_failure_renders_loading_page(client, student_user, login, monkeypatch):
    login(student_user)

    def unavailable(token):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(auth_context, "load_user_from_token", unavailable)

    for path in ("/dashboard", "/academic/courses", "/login"):
        response = client.get(path)
        assert response.status_code == 503
        assert b"Loading" in response.data
        assert response.headers["Retry-After"] == "3"

    # The token survives so the retry can succeed
    with client.session_transaction() as sess:
        assert sess.get(SESSION_TOKEN_KEY)


def test_logout_clears_session(client, student_user, login):
    login(student_user)

    client.get("/logout")

    assert client.get("/dashboard").headers["Location"].endswith("/login")


# ----------------------------
# API
# ----------------------------

def test_api_role_denial_is_403(client, student_user, auth_header):
    response = client.get("/api/finance/campaigns", headers=auth_header(student_user))

    assert response.status_code == 403
    assert response.get_json() == {"success": False, "message": "Insufficient permissions"}


def test_api_accepts_browser_session(client, admin, login):
    login(admin)

    response = client.get("/api/faculties")

    assert response.status_code == 200
    assert response.get_json()["success"] is True


def test_unknown_api_route_uses_json_envelope(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.get_json()["success"] is False
