# clup/core/errors.py
# Error kinds raised by the managers and mapped to HTTP statuses in clup.main.
import enum


class ErrorKind(str, enum.Enum):
    not_found = "not_found"
    invalid_token = "invalid_token"
    conflict = "conflict"
    validation = "validation"


class ClupError(Exception):
    """Base class of every error the HTTP layer knows how to report."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ClupError):
    kind = ErrorKind.not_found


class InvalidTokenError(ClupError):
    kind = ErrorKind.invalid_token


class ConflictError(ClupError):
    kind = ErrorKind.conflict


class ValidationError(ClupError):
    kind = ErrorKind.validation


HTTP_STATUS = {
    ErrorKind.not_found: 404,
    ErrorKind.invalid_token: 401,
    ErrorKind.conflict: 409,
    ErrorKind.validation: 400,
}
