"""Typed errors raised by the services.

The API layer maps each class to its HTTP status; the client maps statuses
back to the same classes.
"""

from typing import Dict, Optional


class TaskboardError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskboardError):
    status_code = 422

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}


class Unauthenticated(TaskboardError):
    status_code = 401


class Forbidden(TaskboardError):
    status_code = 403


class NotFound(TaskboardError):
    status_code = 404


class Conflict(TaskboardError):
    # Duplicate emails and second admins are reported like validation failures
    status_code = 422


_BY_STATUS = {
    401: Unauthenticated,
    403: Forbidden,
    404: NotFound,
    422: ValidationError,
}


def error_for_status(status_code: int, message: str, fields=None) -> TaskboardError:
    cls = _BY_STATUS.get(status_code, TaskboardError)
    if cls is ValidationError:
        # Conflicts share 422 but carry no per-field errors
        if not fields:
            return Conflict(message)
        return ValidationError(message, fields)
    err = cls(message)
    if cls is TaskboardError:
        err.status_code = status_code
    return err
