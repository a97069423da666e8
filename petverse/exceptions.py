from fastapi import status


class PetverseError(Exception):
    """
    Base class for errors raised by the services.

    `message` is what the caller sees; `status_code` is the HTTP status the
    exception handler in main.py answers with.
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PetverseError):
    """Missing or malformed request fields."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(PetverseError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(PetverseError):
    """The caller is known but lacks the capability for the action."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(PetverseError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(PetverseError):
    """Another account already holds a unique value."""
    status_code = status.HTTP_409_CONFLICT


class StateError(PetverseError):
    """The request conflicts with the current state of a record."""
    status_code = status.HTTP_400_BAD_REQUEST


class InfrastructureError(PetverseError):
    """
    Database or mail failures.

    The public message stays generic; the underlying exception is kept in
    `cause` so it can be logged server-side.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause
