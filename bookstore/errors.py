"""
Error taxonomy for the Bookstore API.

Authentication and validation failures are raised before the store is
touched and carry the HTTP status and JSON body they are rendered with.
Store failures stay as ``pymongo.errors.PyMongoError`` and are translated
at the route boundary.
"""

from typing import Dict, Optional

from fastapi import status


class BookstoreError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_403_FORBIDDEN
    message: str = "Request failed"
    key: str = "error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_response(self) -> Dict[str, str]:
        return {self.key: self.message}


class AuthError(BookstoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    key = "message"


class MissingToken(AuthError):
    message = "Authentication failed. Token not found."


class InvalidOrExpiredToken(AuthError):
    message = "Token is invalid or has expired"


class ValidationError(BookstoreError):
    """Request rejected before any store operation."""


class InvalidSortField(ValidationError):
    message = "Invalid sort fields"


class InvalidSortOrder(ValidationError):
    message = "Invalid order format"


class InvalidPagination(ValidationError):
    message = "Invalid pagination parameters"


class InvalidId(ValidationError):
    message = "Invalid id"


class MissingRequiredField(ValidationError):
    message = "Both title and authors fields are required"


class InvalidDataFormat(ValidationError):
    message = "Invalid data format"
