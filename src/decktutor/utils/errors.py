"""Structured error types for the webservice client.

This module provides structured exceptions with recovery actions
for the failure modes of a DeckTutor webservice call.
"""

from enum import Enum
from typing import Any


class RecoveryAction(Enum):
    """Recovery actions for error handling."""

    RETRY = "retry"
    ABORT = "abort"
    RETRY_WITH_DELAY = "retry_with_delay"
    REAUTHENTICATE = "reauthenticate"


class DeckTutorError(Exception):
    """Base exception for client errors."""

    def __init__(
        self, message: str, recovery_action: RecoveryAction = RecoveryAction.ABORT
    ):
        """Initialize client error.

        Args:
            message: Error message
            recovery_action: Suggested recovery action
        """
        super().__init__(message)
        self.recovery_action = recovery_action


class TransportError(DeckTutorError):
    """Error raised when a request could not be delivered.

    This wraps connection failures, timeouts and other transport level
    problems reported by the HTTP library.
    """

    def __init__(self, method: str, url: str, reason: str):
        """Initialize transport error.

        Args:
            method: HTTP method of the failed request
            url: Full request URL
            reason: Description of the underlying failure
        """
        self.method = method
        self.url = url
        self.reason = reason

        message = f"{method} {url} failed: {reason}"
        super().__init__(message, RecoveryAction.RETRY)


class ApiError(DeckTutorError):
    """Error raised when the webservice answers with a non-2xx status."""

    def __init__(self, method: str, url: str, status_code: int, body: str = ""):
        """Initialize API error.

        Args:
            method: HTTP method of the request
            url: Full request URL
            status_code: HTTP status returned by the webservice
            body: Raw response text (truncated in the message)
        """
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body

        message = f"HTTP {status_code} for {method} {url}"
        if body:
            message = f"{message}: {body[:200]}"

        if status_code in (401, 403):
            recovery_action = RecoveryAction.REAUTHENTICATE
        elif status_code >= 500:
            recovery_action = RecoveryAction.RETRY_WITH_DELAY
        else:
            recovery_action = RecoveryAction.ABORT

        super().__init__(message, recovery_action)


class ResponseDecodeError(DeckTutorError):
    """Error raised when a response body is not valid JSON."""

    def __init__(self, url: str, body: str, reason: str):
        self.url = url
        self.body = body
        self.reason = reason

        super().__init__(f"Failed to parse JSON response from {url}: {reason}")


class ResponseFormatError(DeckTutorError):
    """Error raised when a decoded response lacks required fields.

    This occurs when the webservice answers successfully but the
    payload does not carry what the client needs to continue, e.g.
    a login response without credentials.
    """

    def __init__(self, operation: str, missing: list[str], response: Any = None):
        """Initialize response format error.

        Args:
            operation: Client operation that received the response
            missing: Names of the missing fields
            response: The decoded response
        """
        self.operation = operation
        self.missing = missing
        self.response = response

        fields = ", ".join(missing)
        super().__init__(f"Response to {operation} is missing fields: {fields}")


class NotAuthenticatedError(DeckTutorError):
    """Error raised when an operation needs a login session."""

    def __init__(self, operation: str):
        self.operation = operation

        super().__init__(
            f"{operation} requires a logged in session",
            RecoveryAction.REAUTHENTICATE,
        )
