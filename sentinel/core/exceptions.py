"""
Error taxonomy for Sentinel API.

Every error carries the HTTP status it maps to. Routes and services raise
these; the handlers registered in main.py turn them into the response envelope.
"""

from fastapi import status


class SentinelError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public = True  # message may be shown to the caller

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SentinelError):
    """Client input failed a rule. The message names the rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(SentinelError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(SentinelError):
    """Authenticated, but not a member or owner."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(SentinelError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SentinelError):
    status_code = status.HTTP_409_CONFLICT


class RateLimitExceededError(SentinelError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class UpstreamError(SentinelError):
    """
    Transport fault talking to Firestore, Firebase Auth or FCM.
    Logged with full detail, surfaced only as a generic 500.
    """

    public = False


class StoreError(UpstreamError):
    pass


class IdentityError(UpstreamError):
    pass

