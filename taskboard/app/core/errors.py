from typing import Optional


class TaskboardError(Exception):
    """Base class for errors scoped to a single task or auth operation."""

    status_code = 400

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class Unauthenticated(TaskboardError):
    """Raised when no valid session resolves to a user id."""

    status_code = 401


class ValidationError(TaskboardError):
    """Raised for malformed task input (empty text, invalid or missing date)."""

    status_code = 422


class Forbidden(TaskboardError):
    """Raised when the acting user does not own the target task."""

    status_code = 403


class NotFound(TaskboardError):
    """Raised when the target task does not exist."""

    status_code = 404


class MutationInProgress(TaskboardError):
    """Raised when a second mutation starts while one is still in flight."""

    status_code = 409


class StoreUnavailable(TaskboardError):
    """Raised when the persistence store is unreachable or erroring."""

    status_code = 503
