"""
Error types raised by the job decomposition and assignment core.
Handlers map them to HTTP status codes.
"""
from typing import List, Optional


class MicroGigError(Exception):
    """Base class for platform errors."""
    status_code = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_body(self) -> dict:
        body = {'error': self.message}
        if self.details:
            body['details'] = self.details
        return body


class InvalidInputError(MicroGigError):
    """Malformed job or request payload."""
    status_code = 400


class NoEligibleWorkersError(MicroGigError):
    """No worker in the pool can take any task of the job."""
    status_code = 404


class InvalidTransitionError(MicroGigError):
    """Task status change not allowed by the lifecycle."""
    status_code = 409
