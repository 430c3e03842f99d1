"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``app.py`` turns them into shaped JSON responses.
"""

from __future__ import annotations


class AppError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "message": self.message, "error": self.name}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Authentication failed"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 400
    default_message = "Resource already exists"


class InternalError(AppError):
    status_code = 500


__all__ = [
    "AppError",
    "Conflict",
    "InternalError",
    "NotFound",
    "Unauthorized",
    "ValidationError",
]
