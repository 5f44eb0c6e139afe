from __future__ import annotations

import threading
from typing import List

import pytest

from blog_backend.auth import PasswordHasher, TokenIssuer, User, authenticate, bootstrap_user_if_needed, create_user
from blog_backend.auth.crud import count_users, get_user_by_username, insert_user
from blog_backend.config import Config
from blog_backend.db import connect
from blog_backend.errors import AuthenticationError, ConflictError, HashingError


@pytest.mark.parametrize("password", ["", "mypass123", "y" * 1000])
def test_serialize_never_contains_hash(hasher: PasswordHasher, password: str) -> None:
    user = User(username="gyu", id="7")
    user.set_password(password, hasher)
    assert user.hashed_password

    view = user.serialize()
    dumped = view.model_dump()

    assert dumped == {"id": "7", "username": "gyu"}
    assert user.hashed_password not in view.model_dump_json()
    assert user.hashed_password not in repr(user)


def test_set_and_check_password(hasher: PasswordHasher) -> None:
    user = User(username="gyu")
    assert user.check_password("mypass123", hasher) is False

    user.set_password("mypass123", hasher)
    assert user.check_password("mypass123", hasher)
    assert not user.check_password("wrong", hasher)


def test_serialize_requires_persisted_user() -> None:
    with pytest.raises(ValueError):
        User(username="gyu").serialize()


def test_generate_token_carries_identity(issuer: TokenIssuer) -> None:
    user = User(username="gyu", id="1")
    claims = issuer.verify(user.generate_token(issuer))

    assert claims["sub"] == "1"
    assert claims["username"] == "gyu"


def test_create_user_assigns_id_and_rejects_duplicate(db_path: str, hasher: PasswordHasher) -> None:
    with connect(db_path) as conn:
        user = create_user(conn, username="gyu", password="mypass123", hasher=hasher)
    assert user.id == "1"
    assert user.created_at

    with pytest.raises(ConflictError):
        with connect(db_path) as conn:
            create_user(conn, username="gyu", password="other", hasher=hasher)

    with connect(db_path) as conn:
        assert count_users(conn) == 1
        stored = get_user_by_username(conn, "gyu")
    assert stored is not None
    assert stored.check_password("mypass123", hasher)


def test_insert_requires_password(db_path: str) -> None:
    with pytest.raises(ValueError):
        with connect(db_path) as conn:
            insert_user(conn, User(username="gyu"))


def test_concurrent_inserts_for_same_username(db_path: str, hasher: PasswordHasher) -> None:
    results: List[str] = []
    lock = threading.Lock()
    start = threading.Barrier(8)

    def worker(i: int) -> None:
        user = User(username="racer")
        user.set_password(f"pw{i}", hasher)
        start.wait()
        try:
            with connect(db_path) as conn:
                insert_user(conn, user)
            outcome = "ok"
        except ConflictError:
            outcome = "conflict"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("conflict") == 7
    with connect(db_path) as conn:
        assert count_users(conn) == 1


def test_authenticate(db_path: str, hasher: PasswordHasher) -> None:
    with connect(db_path) as conn:
        create_user(conn, username="gyu", password="mypass123", hasher=hasher)

    with connect(db_path) as conn:
        assert authenticate(conn, "gyu", "mypass123", hasher).username == "gyu"
        for username, password in [("gyu", "wrong"), ("nobody", "mypass123"), ("", "x"), ("gyu", "")]:
            with pytest.raises(AuthenticationError):
                authenticate(conn, username, password, hasher)


def test_authenticate_with_corrupt_hash_raises_hashing_error(db_path: str, hasher: PasswordHasher) -> None:
    with connect(db_path) as conn:
        conn.execute(
            "INSERT INTO users (username, password_hash, created_at) VALUES (?,?,?)",
            ("broken", "not-a-hash", "2026-01-01T00:00:00Z"),
        )

    with connect(db_path) as conn:
        with pytest.raises(HashingError):
            authenticate(conn, "broken", "whatever", hasher)


def test_bootstrap_user_only_when_empty(cfg: Config, db_path: str, hasher: PasswordHasher) -> None:
    boot_cfg = Config(
        DB_PATH=cfg.DB_PATH,
        AUTH_JWT_SECRET=cfg.AUTH_JWT_SECRET,
        AUTH_BOOTSTRAP_USERNAME="admin",
        AUTH_BOOTSTRAP_PASSWORD="changeme123",
    )
    assert bootstrap_user_if_needed(cfg, hasher) is None

    created = bootstrap_user_if_needed(boot_cfg, hasher)
    assert created is not None
    assert created.username == "admin"

    assert bootstrap_user_if_needed(boot_cfg, hasher) is None
