"""Classified errors raised by the access layer and mapped to HTTP at the boundary."""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"


class AppError(Exception):
    kind = ErrorKind.STORAGE

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", details: Optional[str] = None):
        super().__init__(message, details)


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class StorageError(AppError):
    kind = ErrorKind.STORAGE
