from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request, Response

from blog_backend.config import Config
from blog_backend.errors import VerificationError, VerificationFailure

from .models import UserView
from .security import TokenIssuer


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def _cookie_secure(cfg: Config) -> bool:
    """Return whether auth cookies should be marked Secure."""
    samesite = str(cfg.AUTH_COOKIE_SAMESITE or "lax").lower()
    # Browsers require Secure when SameSite=None
    if samesite == "none":
        return True
    return bool(cfg.AUTH_COOKIE_SECURE)


def set_session_cookie(response: Response, *, token: str, cfg: Config) -> None:
    """Hand the session token to the browser as an httpOnly cookie."""
    response.set_cookie(
        key=cfg.AUTH_COOKIE_NAME,
        value=str(token),
        httponly=True,
        samesite=str(cfg.AUTH_COOKIE_SAMESITE or "lax").lower(),
        secure=_cookie_secure(cfg),
        max_age=cfg.token_ttl_seconds,
        path=cfg.AUTH_COOKIE_PATH or "/",
        domain=cfg.AUTH_COOKIE_DOMAIN,
    )


def clear_session_cookie(response: Response, cfg: Config) -> None:
    response.delete_cookie(
        key=cfg.AUTH_COOKIE_NAME,
        path=cfg.AUTH_COOKIE_PATH or "/",
        domain=cfg.AUTH_COOKIE_DOMAIN,
        secure=_cookie_secure(cfg),
        httponly=True,
        samesite=str(cfg.AUTH_COOKIE_SAMESITE or "lax").lower(),
    )


def read_session(request: Request, *, cfg: Config, issuer: TokenIssuer) -> Optional[UserView]:
    """Identity carried by the request's session cookie, if any.

    No cookie is the ordinary logged-out state. A cookie that fails
    verification is treated the same way; the reason is only printed.
    """
    token = request.cookies.get(cfg.AUTH_COOKIE_NAME)
    if not token:
        return None

    try:
        claims: Dict[str, Any] = issuer.verify(token)
    except VerificationError as e:
        _debug(f"session cookie rejected: {e.reason.value}")
        return None

    sub = claims.get("sub")
    username = claims.get("username")
    if not isinstance(sub, str) or not isinstance(username, str) or not sub or not username:
        _debug(f"session cookie rejected: {VerificationFailure.MALFORMED.value}")
        return None
    return UserView(id=sub, username=username)
