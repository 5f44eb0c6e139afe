from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from blog_backend.api.server import create_app
from blog_backend.auth import PasswordHasher, TokenIssuer
from blog_backend.config import Config
from blog_backend.db import init_db


SECRET = "tests-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    return Config(
        DB_PATH=str(tmp_path / "blog.sqlite3"),
        AUTH_JWT_SECRET=SECRET,
        AUTH_HASH_ROUNDS=1000,
        AUTH_COOKIE_SECURE=False,
        AUTH_BOOTSTRAP_USERNAME="",
        AUTH_BOOTSTRAP_PASSWORD="",
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture()
def db_path(cfg: Config) -> str:
    init_db(cfg.DB_PATH)
    return cfg.DB_PATH


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=1000)


@pytest.fixture()
def issuer() -> TokenIssuer:
    return TokenIssuer(secret=SECRET)


@pytest.fixture()
def client(cfg: Config):
    app = create_app(cfg)
    with TestClient(app) as c:
        yield c
