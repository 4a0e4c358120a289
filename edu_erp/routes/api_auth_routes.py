from flask import Blueprint, current_app, g, jsonify, request, session

from edu_erp.errors import AuthenticationError, ValidationError
from edu_erp.services.auth_service import (
    authenticate_user,
    change_password,
    issue_token,
    load_user_from_token,
    register_user,
    request_password_reset,
    reset_password,
    update_profile,
)
from edu_erp.utils.auth_context import current_auth
from edu_erp.utils.decorators import token_required
from edu_erp.utils.validation import payload_dict

api_auth_bp = Blueprint("api_auth", __name__)

RESET_REQUESTED_MESSAGE = "If the email exists, a password reset link has been sent"


def _payload():
    return payload_dict(request.get_json(silent=True))


def _acting_user():
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        try:
            return load_user_from_token(header[7:].strip())
        except AuthenticationError:
            return None
    return current_auth().user


@api_auth_bp.route("/register", methods=["POST"])
def register():
    data = _payload()
    acting_user = _acting_user()

    user = register_user(
        email=data.get("email"),
        password=data.get("password"),
        first_name=data.get("firstName"),
        last_name=data.get("lastName"),
        role=data.get("role") or "student",
        acting_user=acting_user
    )

    result = {"user": user.to_dict()}
    # Self-registration signs the new user in
    if acting_user is None:
        result["token"] = issue_token(user)

    return jsonify({
        "success": True,
        "message": "User registered successfully",
        "data": result
    }), 201


@api_auth_bp.route("/login", methods=["POST"])
def login():
    data = _payload()
    user = authenticate_user(data.get("email"), data.get("password"))

    return jsonify({
        "success": True,
        "data": {
            "user": user.to_dict(),
            "token": issue_token(user)
        }
    })


@api_auth_bp.route("/profile", methods=["GET"])
@token_required
def get_profile():
    return jsonify({"success": True, "data": g.current_user.to_dict()})


@api_auth_bp.route("/profile", methods=["PUT"])
@token_required
def put_profile():
    user = update_profile(g.current_user, _payload())
    return jsonify({
        "success": True,
        "message": "Profile updated successfully",
        "data": user.to_dict()
    })


@api_auth_bp.route("/change-password", methods=["PUT"])
@token_required
def put_password():
    data = _payload()
    change_password(g.current_user, data.get("currentPassword"), data.get("newPassword"))
    return jsonify({"success": True, "message": "Password changed successfully"})


@api_auth_bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"success": True, "message": "Logged out successfully"})


@api_auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    token = request_password_reset(_payload().get("email"))

    body = {"success": True, "message": RESET_REQUESTED_MESSAGE}
    if token and current_app.config.get("EXPOSE_RESET_TOKEN"):
        body["resetToken"] = token
    return jsonify(body)


@api_auth_bp.route("/reset-password", methods=["POST"])
def post_reset_password():
    data = _payload()
    reset_password(data.get("token"), data.get("newPassword"))
    return jsonify({"success": True, "message": "Password reset successfully"})


@api_auth_bp.route("/refresh", methods=["POST"])
def refresh():
    refresh_token = _payload().get("refreshToken")
    if not refresh_token:
        raise ValidationError("Refresh token is required")

    user = load_user_from_token(refresh_token)
    return jsonify({
        "success": True,
        "token": issue_token(user),
        "user": user.to_dict()
    })
