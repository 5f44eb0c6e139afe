"""Database schema for the blog backend.

Timestamps are ISO-8601 TEXT (UTC, with 'Z').

The UNIQUE constraint on ``users.username`` is what makes registration safe
under concurrency: two inserts for the same name cannot both succeed, no
matter what the handlers looked up beforehand.
"""

from __future__ import annotations


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Users / Auth
-- Only password hashes are stored. Sessions are stateless JWTs, so there is
-- no sessions table.
CREATE TABLE IF NOT EXISTS users (
    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL
);

-- Posts
CREATE TABLE IF NOT EXISTS posts (
    post_id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    body TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_posts_created ON posts (created_at);
"""


def get_schema_sql() -> str:
    return SCHEMA_SQLITE
