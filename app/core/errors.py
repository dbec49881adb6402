"""
Application errors.

Services raise these; the handlers in app.main turn them into a JSON error
body for API callers or an HTML error page for form posts.
"""

from typing import Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input."


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


class InvalidCredentials(AppError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid username or password."


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated. Please sign in."


class Unauthorized(AppError):
    status_code = 403
    code = "unauthorized"
    default_message = "You are not allowed to do that."


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class Expired(AppError):
    status_code = 400
    code = "expired"
    default_message = "Verification code has expired. Please request a new one."


class Mismatch(AppError):
    status_code = 400
    code = "mismatch"
    default_message = "Invalid verification code."


class UpstreamFailure(AppError):
    status_code = 502
    code = "upstream_failure"
    default_message = "An external service failed. Please try again later."


class InternalError(AppError):
    pass
