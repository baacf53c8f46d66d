"""Error taxonomy for card generation."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Categories of generation failure."""
    SESSION_UNAVAILABLE = "session_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    VALIDATION_FAILED = "validation_failed"
    TIMEOUT = "timeout"
    SUPERSEDED = "superseded"


class GenerationError(Exception):
    """Base class for failures talking to a generation provider."""

    kind: ErrorKind = ErrorKind.SESSION_UNAVAILABLE


class SessionUnavailableError(GenerationError):
    """The provider could not be reached or refused the request."""

    kind = ErrorKind.SESSION_UNAVAILABLE


class MalformedResponseError(GenerationError):
    """The provider replied with content that could not be decoded."""

    kind = ErrorKind.MALFORMED_RESPONSE


class ValidationFailedError(GenerationError):
    """The reply decoded but a value is outside what is allowed."""

    kind = ErrorKind.VALIDATION_FAILED


class GenerationTimeoutError(GenerationError):
    """The provider did not answer in time."""

    kind = ErrorKind.TIMEOUT


class SupersededError(GenerationError):
    """A newer request replaced this one before it finished."""

    kind = ErrorKind.SUPERSEDED


@dataclass(frozen=True)
class GenerationFailure:
    """A failure recorded on the orchestrator for display."""

    kind: ErrorKind
    message: str
    operation: Optional[str] = None

    # Shown to the user above the raw message
    SUMMARIES = {
        ErrorKind.SESSION_UNAVAILABLE: "The language model is unavailable",
        ErrorKind.MALFORMED_RESPONSE: "The language model returned an unreadable reply",
        ErrorKind.VALIDATION_FAILED: "The language model returned an invalid value",
        ErrorKind.TIMEOUT: "The language model took too long to answer",
        ErrorKind.SUPERSEDED: "The request was replaced by a newer one",
    }

    @classmethod
    def from_exception(cls, error: Exception, operation: Optional[str] = None) -> "GenerationFailure":
        kind = error.kind if isinstance(error, GenerationError) else ErrorKind.SESSION_UNAVAILABLE
        return cls(kind=kind, message=str(error) or error.__class__.__name__, operation=operation)

    @property
    def description(self) -> str:
        summary = self.SUMMARIES[self.kind]
        if self.message and self.message != summary:
            return f"{summary}: {self.message}"
        return summary
