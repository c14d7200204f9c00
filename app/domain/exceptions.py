from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    INVALID_PROMPT = "INVALID_PROMPT"
    PROMPT_TOO_LONG = "PROMPT_TOO_LONG"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INVALID_REQUEST = "INVALID_REQUEST"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ClassifiedError(Exception):
    """
    Base error for every failure the query pipeline reports to callers.

    `message` is internal detail (logged, never returned). `public_message` is the
    fixed text rendered in the HTTP response for the error kind.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL_ERROR
    status_code: ClassVar[int] = 500
    public_message: ClassVar[str] = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message

    def describe(self) -> str:
        """Return the caller-facing message for this error."""
        return self.public_message


class InvalidPromptError(ClassifiedError):
    kind = ErrorKind.INVALID_PROMPT
    status_code = 400
    public_message = "Invalid or missing prompt"


class PromptTooLongError(ClassifiedError):
    kind = ErrorKind.PROMPT_TOO_LONG
    status_code = 400
    public_message = "Prompt too long"

    def __init__(self, message: str | None = None, *, max_chars: int = 10_000):
        super().__init__(message)
        self.max_chars = max_chars

    def describe(self) -> str:
        return f"{self.public_message} (max {self.max_chars} characters)"


class RateLimitExceededError(ClassifiedError):
    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    status_code = 429
    public_message = "Rate limit exceeded. Please try again later."

    DEFAULT_RETRY_AFTER_SECONDS: ClassVar[int] = 60

    def __init__(self, message: str | None = None, *, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = (
            self.DEFAULT_RETRY_AFTER_SECONDS if retry_after is None else int(retry_after)
        )


class InvalidRequestError(ClassifiedError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400
    public_message = "Invalid request format or parameters"


class AuthenticationError(ClassifiedError):
    kind = ErrorKind.AUTHENTICATION_ERROR
    status_code = 401
    public_message = "Authentication failed"


class UpstreamTimeoutError(ClassifiedError):
    kind = ErrorKind.TIMEOUT
    status_code = 504
    public_message = "Request timeout"


class UnknownUpstreamError(ClassifiedError):
    kind = ErrorKind.UNKNOWN_ERROR
    status_code = 500
    public_message = "Upstream service error"


class InternalError(ClassifiedError):
    """Unexpected fault; details must never reach the caller."""

    kind = ErrorKind.INTERNAL_ERROR
    status_code = 500
    public_message = "Internal server error"
