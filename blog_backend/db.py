from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from blog_backend.schema import get_schema_sql


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _resolve_path(db_path: str) -> str:
    path = (db_path or "").strip()
    # Support sqlite:///path style
    if path.lower().startswith("sqlite:///"):
        path = path[len("sqlite:///") :]
    if not path:
        raise ValueError("db_path_blank")
    return path


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """Open a SQLite connection that commits on success and rolls back on error.

    Rows come back as ``sqlite3.Row`` so columns can be read by name.
    """
    path = _resolve_path(db_path)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    # Concurrency pragmas: the API serves requests from a threadpool.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")  # 5s
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str) -> None:
    """Create all tables. Safe to call on every startup."""
    _debug(f"Initializing DB at {db_path}")
    with connect(db_path) as conn:
        conn.executescript(get_schema_sql())
