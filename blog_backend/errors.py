"""Exception taxonomy shared by the auth and posts layers.

The HTTP layer maps these to status codes in ``blog_backend.api.server``:

- ConflictError        -> 409
- AuthenticationError  -> 401 (one response body for every cause)
- InternalError        -> 500 (detail printed for operators, not returned)

``VerificationError`` never reaches a client: ``/api/auth/check`` turns it
into an anonymous session. Request validation uses pydantic's own errors.
"""

from __future__ import annotations

from enum import Enum


class BlogBackendError(Exception):
    """Base class for errors raised by this package."""


class HashingError(BlogBackendError):
    """Password hashing failed, or a stored hash could not be read."""


class ConflictError(BlogBackendError):
    """A record with the same unique key already exists."""


class AuthenticationError(BlogBackendError):
    """Credentials were missing or did not match.

    Deliberately carries no hint about which part was wrong.
    """


class VerificationFailure(str, Enum):
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"


class VerificationError(BlogBackendError):
    def __init__(self, reason: VerificationFailure):
        super().__init__(reason.value)
        self.reason = reason


class InternalError(BlogBackendError):
    """Store or hashing failure; the cause is chained via ``__cause__``."""
