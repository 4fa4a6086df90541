"""
Error taxonomy for the demo service.
Preconditions raise DemoServiceError subclasses; remote calls return result
objects carrying an ErrorKind instead of raising.
"""
import enum


class ErrorKind(str, enum.Enum):
    """Category of a failed operation, reported to callers as `errorKind`."""

    INVALID_INPUT = "invalid_input"
    AUTHENTICATION_FAILURE = "authentication_failure"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"
    VALIDATION_FAILURE = "validation_failure"
    CONFIGURATION_ERROR = "configuration_error"


class DemoServiceError(Exception):
    """Base class for precondition failures raised inside the service."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(DemoServiceError):
    """Malformed caller data, e.g. an unidentifiable requester."""

    kind = ErrorKind.INVALID_INPUT


class ConfigurationError(DemoServiceError):
    """A required setting is missing."""

    kind = ErrorKind.CONFIGURATION_ERROR
