"""Per-request authentication state and the page access decisions built on it."""
import logging
from dataclasses import dataclass

from flask import g, session
from sqlalchemy.exc import SQLAlchemyError

from edu_erp.errors import AuthenticationError
from edu_erp.services.auth_service import load_user_from_token

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = "auth_token"

LOADING = "loading"
REDIRECT = "redirect"
ALLOW = "allow"


@dataclass
class AuthState:
    user: object = None
    token: str = None
    loading: bool = False
    error: str = None


@dataclass(frozen=True)
class RouteDecision:
    action: str
    target: str = None


def load_auth_state(token) -> AuthState:
    """
    Resolve the signed-in user from a persisted token.
    A bad token is reported in `error`; a database failure leaves the
    state loading so the page can retry.
    """
    if not token:
        return AuthState()

    try:
        user = load_user_from_token(token)
    except AuthenticationError as exc:
        return AuthState(error=exc.message)
    except SQLAlchemyError:
        logger.exception("Could not load the signed-in user")
        return AuthState(token=token, loading=True, error="Failed to load user")

    return AuthState(user=user, token=token)


def current_auth() -> AuthState:
    return getattr(g, "auth", None) or AuthState()


def sign_in(token: str):
    session.clear()
    session[SESSION_TOKEN_KEY] = token


def resolve_route_access(auth: AuthState, required_roles=None) -> RouteDecision:
    if auth.loading:
        return RouteDecision(LOADING)
    if auth.user is None:
        return RouteDecision(REDIRECT, "/login")
    if required_roles and auth.user.role not in required_roles:
        return RouteDecision(REDIRECT, "/dashboard")
    return RouteDecision(ALLOW)


def resolve_public_access(auth: AuthState) -> RouteDecision:
    if auth.loading:
        return RouteDecision(LOADING)
    if auth.user is not None:
        return RouteDecision(REDIRECT, "/dashboard")
    return RouteDecision(ALLOW)
