"""
Web tier Custom Exceptions

This module defines the exceptions the HTTP tier raises when a wikidb
request does not produce a reply. Each carries the HTTP status it is
rendered with by the handlers registered in main.py.
"""

from typing import Optional

from src.channel.errors import FailureCode


class WikiException(Exception):
    """
    Base exception class for all web tier errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[str] = None,
        failure_code: Optional[str] = None,
    ):
        """
        Initialize WikiException.

        Args:
            message: Human-readable error message
            status_code: HTTP status code to return
            details: Additional error details (optional)
            failure_code: Channel failure code label (optional)
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details
        self.failure_code = failure_code

    def to_dict(self) -> dict:
        """Convert exception to dict for JSON response."""
        result = {
            "error": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.failure_code:
            result["failureCode"] = self.failure_code
        return result


FAILURE_STATUS_MAP = {
    FailureCode.NO_ACTION_SPECIFIED: 400,
    FailureCode.BAD_ACTION: 400,
    FailureCode.DB_ERROR: 500,
}


class WikiDbFailureError(WikiException):
    """
    The wikidb tier failed the request (no-action-specified, bad-action
    or db-error).
    """

    def __init__(self, code: FailureCode, details: Optional[str] = None):
        super().__init__(
            message=f"wikidb request failed: {code.label}",
            status_code=FAILURE_STATUS_MAP.get(code, 500),
            details=details,
            failure_code=code.label,
        )
        self.code = code


class WikiDbUnavailableError(WikiException):
    """Exception raised when no wikidb consumer can take the request."""

    def __init__(
        self,
        message: str = "wikidb service is unavailable",
        details: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=503,
            details=details,
        )


class WikiDbTimeoutError(WikiException):
    """Exception raised when the wikidb reply did not arrive in time."""

    def __init__(
        self,
        timeout: float,
        details: Optional[str] = None,
    ):
        super().__init__(
            message=f"wikidb did not reply within {timeout}s",
            status_code=504,
            details=details,
        )
        self.timeout = timeout


class WikiDbCommunicationError(WikiException):
    """
    Exception raised when the channel to wikidb breaks (transport error,
    consumer crash).
    """

    def __init__(
        self,
        message: str = "Failed to communicate with wikidb",
        details: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=502,
            details=details,
        )
