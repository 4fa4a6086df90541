"""
Abstract adapters for the remote collaborators.
The orchestrator only talks to these interfaces, so the Google implementations
can be swapped for fakes without changing any business logic.
"""
import enum
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..errors import ErrorKind


class TokenResult(BaseModel):
    """Outcome of a bearer token exchange."""

    token: Optional[str] = None
    error: Optional[str] = None
    error_kind: ErrorKind = ErrorKind.AUTHENTICATION_FAILURE

    @property
    def ok(self) -> bool:
        return bool(self.token)


class DirectoryOutcome(str, enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    CREATED = "created"
    CONFLICT = "conflict"
    UPDATED = "updated"
    DELETED = "deleted"
    AUTHENTICATION_FAILURE = "authentication_failure"
    CONFIGURATION_ERROR = "configuration_error"
    TRANSPORT_ERROR = "transport_error"


class DirectoryResult(BaseModel):
    """Outcome of one directory call, HTTP status already interpreted."""

    outcome: DirectoryOutcome
    record: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def error_kind(self) -> ErrorKind:
        if self.outcome == DirectoryOutcome.AUTHENTICATION_FAILURE:
            return ErrorKind.AUTHENTICATION_FAILURE
        if self.outcome == DirectoryOutcome.CONFIGURATION_ERROR:
            return ErrorKind.CONFIGURATION_ERROR
        if self.outcome == DirectoryOutcome.NOT_FOUND:
            return ErrorKind.NOT_FOUND
        return ErrorKind.TRANSPORT_ERROR


class GenerationResult(BaseModel):
    """Outcome of a text generation call."""

    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class TokenProvider(ABC):
    """Exchanges stored credential material for a directory bearer token."""

    @abstractmethod
    def get_access_token(self) -> TokenResult:
        """
        Return a bearer token usable against the directory API.

        Never raises: a failed or denied exchange is reported in the result.
        """
        ...

    def reset(self) -> None:
        """Drop any cached credentials so the next call re-authenticates."""
        return None


class DirectoryClient(ABC):
    """Remote user-account store."""

    @abstractmethod
    def lookup(self, email: str) -> DirectoryResult:
        """FOUND with the user record, NOT_FOUND, or a failure outcome."""
        ...

    @abstractmethod
    def create(self, email: str, first_name: str, last_name: str, password: str) -> DirectoryResult:
        """CREATED, CONFLICT, or a failure outcome."""
        ...

    @abstractmethod
    def update_credential(self, email: str, password: str) -> DirectoryResult:
        """UPDATED or a failure outcome."""
        ...

    @abstractmethod
    def delete(self, email: str) -> DirectoryResult:
        """DELETED (also when the user was already gone) or a failure outcome."""
        ...


class TextGenerator(ABC):
    """Generative text model endpoint."""

    @abstractmethod
    def generate(self, prompt: str, model_name: str) -> GenerationResult:
        """Return the raw text of the first candidate, or a failure."""
        ...
