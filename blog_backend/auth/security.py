from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import jwt
from passlib.context import CryptContext
from passlib.exc import PasswordSizeError

from blog_backend.config import Config
from blog_backend.errors import HashingError, VerificationError, VerificationFailure

# passlib refuses longer secrets (PasswordSizeError).
MAX_PASSWORD_LENGTH = 4096


class PasswordHasher:
    """Salted PBKDF2-SHA256 password hashing via passlib.

    Every call to :meth:`hash` draws a fresh salt, so hashing the same password
    twice yields two different strings. ``rounds`` is the cost factor.
    """

    def __init__(self, *, rounds: int):
        if int(rounds) < 1:
            raise ValueError("hash_rounds_invalid")
        self.rounds = int(rounds)
        self._pwd = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=self.rounds,
        )

    @classmethod
    def from_config(cls, cfg: Config) -> "PasswordHasher":
        return cls(rounds=cfg.AUTH_HASH_ROUNDS)

    def hash(self, password: str) -> str:
        try:
            return self._pwd.hash(password)
        except (ValueError, TypeError, OSError, NotImplementedError) as e:
            raise HashingError(f"hash_failed: {type(e).__name__}") from e

    def verify(self, password: str, password_hash: str) -> bool:
        """Return True iff ``password`` matches ``password_hash``.

        A mismatch is just ``False``, and so is a password too long to hash.
        A stored hash passlib cannot parse raises :class:`HashingError`. The
        digest comparison is constant-time.
        """
        try:
            return bool(self._pwd.verify(password, password_hash))
        except PasswordSizeError:
            # Same cost as a real mismatch, so the length check does not show.
            self._pwd.dummy_verify()
            return False
        except (ValueError, TypeError) as e:
            raise HashingError(f"stored_hash_unreadable: {type(e).__name__}") from e

    def dummy_verify(self) -> None:
        """Spend roughly one verification worth of time, for unknown users."""
        self._pwd.dummy_verify()


def _is_compact_jws(token: str) -> bool:
    parts = token.split(".")
    return len(parts) == 3 and all(parts)


def _header_segment(secret: str, algorithm: str) -> str:
    return jwt.encode({}, secret, algorithm=algorithm).split(".")[0]


class TokenIssuer:
    """Signs and verifies stateless session tokens (JWT, HMAC by default).

    The secret is fixed for the life of the issuer; nothing is stored server-side.
    """

    def __init__(self, *, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        if not secret:
            raise ValueError("jwt_secret_blank")
        self._secret = secret
        self._algorithm = algorithm
        self._header = _header_segment(secret, algorithm)
        self.ttl = ttl

    @classmethod
    def from_config(cls, cfg: Config) -> "TokenIssuer":
        return cls(
            secret=cfg.AUTH_JWT_SECRET,
            algorithm=cfg.AUTH_JWT_ALGORITHM,
            ttl=timedelta(seconds=cfg.token_ttl_seconds),
        )

    def issue(
        self,
        claims: Mapping[str, Any],
        ttl: Optional[timedelta] = None,
        *,
        now: Optional[datetime] = None,
    ) -> str:
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + (self.ttl if ttl is None else ttl)

        payload: Dict[str, Any] = dict(claims)
        payload["iat"] = int(issued_at.timestamp())
        payload["exp"] = int(expires_at.timestamp())
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """Return the token's claims, or raise :class:`VerificationError`.

        PyJWT checks the signature before it parses the payload or looks at
        ``exp``, so an expired forgery is reported as a bad signature.
        """
        if not token:
            raise VerificationError(VerificationFailure.MALFORMED)
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise VerificationError(VerificationFailure.EXPIRED) from e
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise VerificationError(VerificationFailure.BAD_SIGNATURE) from e
        except jwt.DecodeError as e:
            # Our own header, or three non-empty segments, that no longer decode
            # means the token was altered after signing (a separator included).
            if _is_compact_jws(token) or token.startswith(self._header):
                raise VerificationError(VerificationFailure.BAD_SIGNATURE) from e
            raise VerificationError(VerificationFailure.MALFORMED) from e
        except jwt.InvalidTokenError as e:
            raise VerificationError(VerificationFailure.MALFORMED) from e
