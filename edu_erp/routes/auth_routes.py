from flask import Blueprint, render_template, request, redirect, url_for, session, flash, g

from edu_erp.services.auth_service import authenticate_user, issue_token
from edu_erp.utils.auth_context import SESSION_TOKEN_KEY, load_auth_state, sign_in
from edu_erp.utils.decorators import public_only

auth_bp = Blueprint("auth", __name__)


@auth_bp.before_app_request
def load_logged_in_user():
    if request.endpoint == "static":
        return

    g.auth = load_auth_state(session.get(SESSION_TOKEN_KEY))

    # Drop a token that no longer resolves to an active user
    if g.auth.error and not g.auth.loading:
        session.pop(SESSION_TOKEN_KEY, None)


@auth_bp.route("/login", methods=["GET", "POST"])
@public_only
def login():
    if request.method == "POST":
        email = request.form.get("email")
        password = request.form.get("password")

        try:
            user = authenticate_user(email, password)
        except ValueError as e:
            flash(str(e), "danger")
            return redirect(url_for("auth.login"))

        sign_in(issue_token(user))
        flash(f"Welcome back, {user.first_name}!", "success")
        return redirect(url_for("pages.dashboard"))

    return render_template("login.html")


@auth_bp.route("/logout")
def logout():
    session.clear()
    flash("Logged out successfully", "success")
    return redirect(url_for("auth.login"))
