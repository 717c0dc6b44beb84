"""
Exceptions for fetch_lifecycle.
"""


class FetchLifecycleError(Exception):
    """Base error for fetch_lifecycle."""


class ResponseDecodeError(FetchLifecycleError, ValueError):
    """Response body could not be decoded as the requested kind."""

    def __init__(self, message: str, *, request_id=None, body: str = ""):
        super().__init__(message)
        self.request_id = request_id
        self.body = body


class InvalidOptionError(FetchLifecycleError, ValueError):
    """Unknown or malformed request option."""


class DuplicateRequestError(FetchLifecycleError, ValueError):
    """A live request is already registered under this ID."""
