import logging
from functools import wraps

from flask import current_app, g, redirect, render_template, request

from edu_erp.errors import AuthenticationError, AuthorizationError
from edu_erp.services.auth_service import load_user_from_token
from edu_erp.utils.auth_context import (
    ALLOW,
    LOADING,
    current_auth,
    resolve_public_access,
    resolve_route_access,
)

logger = logging.getLogger(__name__)


def _render_decision(decision):
    if decision.action == LOADING:
        retry = current_app.config["LOADING_RETRY_SECONDS"]
        response = current_app.make_response((render_template("loading.html", retry=retry), 503))
        response.headers["Retry-After"] = str(retry)
        return response
    return redirect(decision.target)


# ----------------------------
# PAGES
# ----------------------------

def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        decision = resolve_route_access(current_auth())
        if decision.action != ALLOW:
            return _render_decision(decision)
        return view(*args, **kwargs)
    return wrapped


def role_required(*roles):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            auth = current_auth()
            decision = resolve_route_access(auth, roles)
            if decision.action != ALLOW:
                if auth.user is not None and not auth.loading:
                    logger.warning(
                        "Page access denied: user %s (%s) on %s",
                        auth.user.id, auth.user.role, request.path
                    )
                return _render_decision(decision)
            return view(*args, **kwargs)
        return wrapped
    return decorator


def public_only(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        decision = resolve_public_access(current_auth())
        if decision.action != ALLOW:
            return _render_decision(decision)
        return view(*args, **kwargs)
    return wrapped


# ----------------------------
# API
# ----------------------------

def _bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def token_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        token = _bearer_token()
        if token:
            g.current_user = load_user_from_token(token)
            g.current_token = token
        else:
            # Browser pages call the API with their session
            auth = current_auth()
            if auth.user is None:
                raise AuthenticationError("Access token is required")
            g.current_user = auth.user
            g.current_token = auth.token
        return view(*args, **kwargs)
    return wrapped


def api_roles_required(*roles):
    def decorator(view):
        @wraps(view)
        @token_required
        def wrapped(*args, **kwargs):
            user = g.current_user
            if user.role not in roles:
                logger.warning(
                    "Permission denied: user %s (%s) attempted %s %s",
                    user.id, user.role, request.method, request.path
                )
                raise AuthorizationError("Insufficient permissions")
            return view(*args, **kwargs)
        return wrapped
    return decorator
