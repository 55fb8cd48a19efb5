"""Exceptions raised while talking to the Joplin data API."""

from typing import Optional


class TaggerError(Exception):
    """Base exception for notebook tagger operations."""

    pass


class ResponseParseError(TaggerError):
    """Raised when a response body is not the JSON shape we expected."""

    pass


class TransportError(TaggerError):
    """Base class for failed API requests."""

    pass


class TransportExhaustedError(TransportError):
    """Raised when every attempt failed at the network level."""

    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        self.attempts = attempts
        self.last_error = last_error
        message = f"Request failed after {attempts} attempts"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


class HardStatusError(TransportError):
    """Raised for a non-success status that is not an "already exists" conflict."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error. Status: {status_code}. Response: {body}")


class SoftConflictError(TransportError):
    """Raised when the server reports the target already exists.

    The desired remote state is present, so callers treat this as a skip.
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Already exists (status {status_code}): {body}")
