"""
Domain errors raised by the storage façade
"""

from typing import Any, Optional


class RegistrationError(Exception):
    """Base class for every failure surfaced to route handlers"""

    status_code = 500
    error_code = "registration_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(RegistrationError):
    status_code = 400
    error_code = "invalid_input"


class NotFound(RegistrationError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str = "Resource", details: Optional[Any] = None):
        super().__init__(f"{resource} not found", details)
        self.resource = resource


class Conflict(RegistrationError):
    status_code = 409
    error_code = "conflict"


class StorageFailure(RegistrationError):
    status_code = 500
    error_code = "storage_failure"
