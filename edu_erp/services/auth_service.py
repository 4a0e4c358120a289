import logging
import secrets
from datetime import timedelta

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from edu_erp.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from edu_erp.extensions import db
from edu_erp.models.base import get_local_time
from edu_erp.models.user import ROLES, User
from edu_erp.utils.validation import clean_text

logger = logging.getLogger(__name__)

TOKEN_SALT = "edu-erp-auth-token"
SELF_SERVICE_ROLES = ("student",)
MIN_PASSWORD_LENGTH = 6


# ----------------------------
# TOKENS
# ----------------------------

def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user: User) -> str:
    return _serializer().dumps({"user_id": user.id, "role": user.role})


def load_user_from_token(token: str) -> User:
    """
    Decode a token and return its active user.
    Raises AuthenticationError for bad, expired or orphaned tokens.
    """
    if not token:
        raise AuthenticationError("Access token is required")
    if not isinstance(token, str):
        raise AuthenticationError("Invalid token")

    try:
        payload = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except SignatureExpired:
        raise AuthenticationError("Token has expired")
    except BadSignature:
        raise AuthenticationError("Invalid token")

    user = db.session.get(User, payload.get("user_id"))
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid token")
    return user


# ----------------------------
# LOGIN / REGISTER
# ----------------------------

def _check_password_type(*passwords):
    if any(p is not None and not isinstance(p, str) for p in passwords):
        raise ValidationError("Password must be text")


def authenticate_user(email: str, password: str) -> User:
    email = clean_text(email, "Email").lower()
    _check_password_type(password)
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.warning("Failed login attempt for %s", email)
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("Account is not active. Please contact administrator.")

    user.last_login = get_local_time()
    db.session.commit()
    logger.info("User logged in: %s", user.email)
    return user


def register_user(email, password, first_name, last_name, role="student", acting_user=None):
    email = clean_text(email, "Email").lower()
    first_name = clean_text(first_name, "First name")
    last_name = clean_text(last_name, "Last name")
    _check_password_type(password)
    if not email or not password or not first_name or not last_name:
        raise ValidationError("All fields are required")

    role = role or "student"
    if not isinstance(role, str) or role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")

    # Only administrators may create staff accounts
    if role not in SELF_SERVICE_ROLES:
        if acting_user is None or acting_user.role not in ("admin", "system_admin"):
            raise AuthorizationError("Only administrators can create accounts with this role")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already in use")

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role
    )
    user.set_password(password)

    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s with role %s", user.email, user.role)
    return user


# ----------------------------
# PROFILE
# ----------------------------

def update_profile(user: User, data: dict) -> User:
    first_name = clean_text(data.get("firstName"), "First name")
    last_name = clean_text(data.get("lastName"), "Last name")

    if "firstName" in data and not first_name:
        raise ValidationError("First name cannot be empty")
    if "lastName" in data and not last_name:
        raise ValidationError("Last name cannot be empty")

    if first_name:
        user.first_name = first_name
    if last_name:
        user.last_name = last_name

    db.session.commit()
    return user


def change_password(user: User, current_password: str, new_password: str):
    _check_password_type(current_password, new_password)
    if not current_password or not new_password:
        raise ValidationError("Current and new password are required")
    if not user.check_password(current_password):
        raise AuthenticationError("Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user.set_password(new_password)
    db.session.commit()
    logger.info("Password changed for %s", user.email)


# ----------------------------
# PASSWORD RESET
# ----------------------------

def request_password_reset(email: str):
    """
    Store a one-hour reset token on the user.
    Returns the token, or None when no active account matches;
    callers must answer identically in both cases.
    """
    email = clean_text(email, "Email", required=True).lower()

    user = User.query.filter_by(email=email, is_active=True).first()
    if not user:
        return None

    token = secrets.token_hex(32)
    user.reset_token = token
    user.reset_token_expiry = get_local_time().replace(tzinfo=None) + timedelta(
        seconds=current_app.config["RESET_TOKEN_TTL"]
    )
    db.session.commit()

    logger.info("Password reset requested for %s", user.email)
    return token


def reset_password(token: str, new_password: str):
    clean_text(token, "Reset token")
    _check_password_type(new_password)
    if not token or not new_password:
        raise ValidationError("Token and new password are required")

    user = User.query.filter_by(reset_token=token, is_active=True).first()
    now = get_local_time().replace(tzinfo=None)
    if not user or not user.reset_token_expiry or user.reset_token_expiry.replace(tzinfo=None) <= now:
        raise ValidationError("Invalid or expired reset token")

    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user.set_password(new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.session.commit()
    logger.info("Password reset completed for %s", user.email)
