import logging

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from utils.exceptions import ServiceError, InternalError

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Marshmallow validation errors: field-level details go back to the client
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 400, details=err.messages)

    # Typed service failures: the client only ever sees the class-level message
    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        if isinstance(err, InternalError):
            logger.error("internal failure: %s", err.reason, exc_info=err)
        elif err.status in (401, 403):
            logger.info("%s: %s", err.error, err.reason)
        return error_response(err.error, err.message, err.status)

    # Integrity errors that escaped a store (unique constraints, FK violations)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        logger.warning("integrity error: %s", getattr(err, "orig", err))
        lower_msg = str(getattr(err, "orig", err)).lower()
        if "unique" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        names = {400: "BAD_REQUEST", 401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND",
                 405: "METHOD_NOT_ALLOWED", 409: "CONFLICT"}
        return error_response(names.get(code, "HTTP_ERROR"), err.description, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
