import logging

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error. Please contact the administrator."

# Error kind reported for each HTTP status
ERROR_KINDS = {
    400: "INVALID_INPUT",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Field validation failures are bad input: 400 with the per-field messages
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("INVALID_INPUT", "invalid request", 400, details={"fields": err.messages})

    # Integrity errors that slipped past the explicit checks in the handlers
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        if "unique" in message or "duplicate" in message:
            return error_response("CONFLICT", "Resource already exists.", 409)
        logger.exception("Integrity error", exc_info=err)
        return error_response("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, 500)

    # abort(...) from the handlers, with their description as the message
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 500
        if status >= 500:
            return error_response("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, status)
        return error_response(ERROR_KINDS.get(status, "BAD_REQUEST"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, 500, details=details)
