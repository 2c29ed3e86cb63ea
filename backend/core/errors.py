"""
Application error types.

Errors derived from DocuLinguaError are turned into a JSON ``{"message": ...}``
response with their status code by the handlers registered in main.py.
"""
from typing import Optional


class DocuLinguaError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(DocuLinguaError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(DocuLinguaError):
    status_code = 401
    default_message = "Unauthorized: No token provided or invalid format"


class Forbidden(DocuLinguaError):
    status_code = 403
    default_message = "Forbidden"


class TokenExpired(Forbidden):
    default_message = "Forbidden: Token expired"


class InvalidToken(Forbidden):
    default_message = "Forbidden: Invalid token"


class NotFound(DocuLinguaError):
    status_code = 404
    default_message = "Not found"


class Conflict(DocuLinguaError):
    status_code = 409
    default_message = "Conflict"


class UploadFailed(DocuLinguaError):
    status_code = 500
    default_message = "File upload failed"


class InternalError(DocuLinguaError):
    status_code = 500
    default_message = "Internal server error"
