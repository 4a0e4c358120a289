"""Service-level exceptions and their JSON rendering for the API."""
import logging

from flask import flash, jsonify, redirect, request, url_for
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ServiceError(ValueError):
    """Base error raised by services; carries the HTTP status for the API."""

    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class AuthorizationError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


def error_response(message, status_code, errors=None):
    payload = {"success": False, "message": message}
    if errors:
        payload["errors"] = errors
    return jsonify(payload), status_code


def _is_api_request():
    return request.path.startswith("/api/")


def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def handle_service_error(exc):
        if _is_api_request():
            return error_response(exc.message, exc.status_code, exc.errors)

        # Pages report the error on the previous page, never on the failing URL
        flash(exc.message, "danger")
        target = request.referrer
        if not target or target == request.url:
            target = url_for("pages.dashboard")
        return redirect(target)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if not _is_api_request():
            return exc.get_response()
        return error_response(exc.description, exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        if isinstance(exc, HTTPException):
            return handle_http_error(exc)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if _is_api_request():
            return error_response("Internal server error", 500)
        return "Internal server error", 500
