# famhub/apps/family_api/exceptions.py
"""
Errors raised by the family_api services.

They are plain exceptions so the services can be called from Celery tasks,
the admin or the shell; views translate them into HTTP responses.
"""


class FamilyHubError(Exception):
    """Base class for recoverable service errors."""
    status_code = 400

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message)


class ValidationError(FamilyHubError):
    """Invalid or missing input."""
    status_code = 400


class InvalidSampleError(ValidationError):
    """Location sample has malformed coordinates."""


class NotFoundError(FamilyHubError):
    """Referenced record does not exist."""
    status_code = 404


class ConflictError(FamilyHubError):
    """Concurrent containment update lost the race; retry the request."""
    status_code = 409
