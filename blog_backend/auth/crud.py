from __future__ import annotations

import sqlite3
from typing import Any, Optional

from blog_backend.config import Config
from blog_backend.db import connect, utcnow_iso
from blog_backend.errors import AuthenticationError, ConflictError

from .models import RegisterRequest, User
from .security import PasswordHasher


def get_user_by_username(conn: Any, username: str) -> Optional[User]:
    u = (username or "").strip()
    if not u:
        return None
    row = conn.execute(
        "SELECT * FROM users WHERE username=?",
        (u,),
    ).fetchone()
    return User.from_row(row) if row is not None else None


def insert_user(conn: Any, user: User) -> User:
    """Persist a new user and fill in its id.

    The insert either claims the username or fails; the UNIQUE constraint
    settles races between concurrent registrations.
    """
    if not user.hashed_password:
        raise ValueError("password_not_set")

    now = utcnow_iso()
    try:
        cur = conn.execute(
            "INSERT INTO users (username, password_hash, created_at) VALUES (?,?,?)",
            (user.username, user.hashed_password, now),
        )
    except sqlite3.IntegrityError as e:
        raise ConflictError("username_exists") from e

    user.id = str(cur.lastrowid)
    user.created_at = now
    return user


def create_user(conn: Any, *, username: str, password: str, hasher: PasswordHasher) -> User:
    if get_user_by_username(conn, username) is not None:
        raise ConflictError("username_exists")

    user = User(username=username)
    user.set_password(password, hasher)
    return insert_user(conn, user)


def authenticate(conn: Any, username: str, password: str, hasher: PasswordHasher) -> User:
    """Return the matching user or raise :class:`AuthenticationError`.

    Missing fields, unknown usernames and wrong passwords all raise the same
    error. Unknown usernames still pay for one hash so timing stays flat.
    """
    if not username or not password:
        raise AuthenticationError()

    user = get_user_by_username(conn, username)
    if user is None:
        hasher.dummy_verify()
        raise AuthenticationError()

    if not user.check_password(password, hasher):
        raise AuthenticationError()
    return user


def count_users(conn: Any) -> int:
    return int(conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"])


def bootstrap_user_if_needed(cfg: Config, hasher: PasswordHasher) -> Optional[User]:
    """Create the first account if the users table is empty.

    Controlled via AUTH_BOOTSTRAP_USERNAME / AUTH_BOOTSTRAP_PASSWORD. Nothing
    happens unless both are set.
    """
    username = (cfg.AUTH_BOOTSTRAP_USERNAME or "").strip()
    password = cfg.AUTH_BOOTSTRAP_PASSWORD or ""
    if not username or not password:
        return None

    req = RegisterRequest(username=username, password=password)
    with connect(cfg.DB_PATH) as conn:
        if count_users(conn) > 0:
            return None
        return create_user(conn, username=req.username, password=req.password, hasher=hasher)
