"""
Application error taxonomy plus the two places errors leave the app:
- format_graphql_error: Ariadne error formatter for /graphql
- register_error_handlers: JSON envelope for the plain Flask routes
"""
from __future__ import annotations

import logging
import traceback

from flask import jsonify, current_app
from graphql import GraphQLError
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException

from models.schemas.user import first_error

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorCode:
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_EXISTS = "USER_EXISTS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    GRAPHQL_ERROR = "GRAPHQL_VALIDATION_FAILED"


class AppError(Exception):
    """Known, client-safe failure with a stable machine readable code."""
    code = ErrorCode.INTERNAL_ERROR
    status = 500
    default_message = GENERIC_MESSAGE

    def __init__(self, message: str | None = None, field: str | None = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def extensions(self) -> dict:
        ext = {"code": self.code, "statusCode": self.status}
        if self.field:
            ext["field"] = self.field
        return ext


class ValidationError(AppError):
    code = ErrorCode.VALIDATION_ERROR
    status = 400
    default_message = "Invalid input"


class AuthenticationError(AppError):
    code = ErrorCode.UNAUTHENTICATED
    status = 401
    default_message = "Authentication required"


class InvalidCredentialsError(AppError):
    code = ErrorCode.INVALID_CREDENTIALS
    status = 401
    default_message = "Invalid email or password"


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND
    status = 404
    default_message = "Resource not found"


class UserExistsError(AppError):
    code = ErrorCode.USER_EXISTS
    status = 409
    default_message = "User with this email already exists"


class InternalError(AppError):
    """Unexpected failure; the message is generic unless details are exposed."""


def validation_error_from_schema(err: SchemaValidationError) -> ValidationError:
    field, message = first_error(err)
    return ValidationError(message, field=field)


def _original(error: GraphQLError):
    original = error.original_error
    while isinstance(original, GraphQLError) and original.original_error is not None:
        original = original.original_error
    return original


def _stack(exc: BaseException) -> list[str]:
    return traceback.format_exception(type(exc), exc, exc.__traceback__)


def format_graphql_error(error: GraphQLError, debug: bool = False) -> dict:
    """Map an execution error onto {message, locations, path, extensions}."""
    formatted = dict(error.formatted)
    original = _original(error)

    if isinstance(original, SchemaValidationError):
        original = validation_error_from_schema(original)

    if isinstance(original, AppError):
        formatted["message"] = original.message
        formatted["extensions"] = original.extensions()
        if debug:
            formatted["extensions"]["stacktrace"] = _stack(original)
        return formatted

    if original is None:
        # Parse / schema validation problems in the query document itself
        formatted["extensions"] = {"code": ErrorCode.GRAPHQL_ERROR, "statusCode": 400}
        return formatted

    logger.error("Unhandled GraphQL error at %s", error.path, exc_info=original)
    message = str(original)
    internal = InternalError(message if debug or "not found" in message.lower() else None)
    formatted["message"] = internal.message
    formatted["extensions"] = internal.extensions()
    if debug:
        formatted["extensions"]["details"] = {"type": original.__class__.__name__, "stacktrace": _stack(original)}
    return formatted


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        details = {"field": err.field} if err.field else None
        return error_response(err.code, err.message, err.status, details=details)

    # Marshmallow validation errors map to 400 with the first failing field
    @app.errorhandler(SchemaValidationError)
    def handle_validation_error(err: SchemaValidationError):
        field, message = first_error(err)
        return error_response(ErrorCode.VALIDATION_ERROR, message, 400, details={"field": field})

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response(ErrorCode.NOT_FOUND, "Resource not found", 404)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response("BAD_REQUEST", err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        internal = InternalError()
        details = None
        if current_app and current_app.config.get("EXPOSE_ERROR_DETAILS"):
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response(internal.code, internal.message, internal.status, details=details)
