"""
Exceptions for the transport layer.

Only transport-level failures ever reach a caller as an error value: a
response with a failing status is a normal result, however many times it
was retried.
"""


class RetryRequestError(Exception):
    """
    Base exception for all retry-request errors.

    Attributes:
        message: Human readable description
        details: Structured context for logging (method, url, ...)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportError(RetryRequestError):
    """
    Raised when a single attempt cannot complete at the transport level.

    Includes DNS resolution failures, refused or reset connections and
    timeouts enforced by the HTTP client. Never retried: the retry loop
    only reacts to well-formed responses.
    """
    pass
