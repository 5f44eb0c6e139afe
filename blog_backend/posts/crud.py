from __future__ import annotations

from typing import Any, Dict, List, Optional

from blog_backend.db import utcnow_iso


def public_post(row: Any) -> Dict[str, Any]:
    return {
        "id": int(row["post_id"]),
        "title": str(row["title"]),
        "body": str(row["body"]),
    }


def get_post(conn: Any, post_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT * FROM posts WHERE post_id=?",
        (int(post_id),),
    ).fetchone()
    return public_post(row) if row is not None else None


def list_posts(conn: Any) -> List[Dict[str, Any]]:
    rows = conn.execute("SELECT * FROM posts ORDER BY post_id").fetchall()
    return [public_post(r) for r in rows]


def create_post(conn: Any, *, title: str, body: str) -> Dict[str, Any]:
    # AUTOINCREMENT hands out ids; no in-process counter.
    now = utcnow_iso()
    cur = conn.execute(
        "INSERT INTO posts (title, body, created_at, updated_at) VALUES (?,?,?,?)",
        (title, body, now, now),
    )
    post = get_post(conn, int(cur.lastrowid))
    assert post is not None
    return post


def delete_post(conn: Any, post_id: int) -> bool:
    cur = conn.execute("DELETE FROM posts WHERE post_id=?", (int(post_id),))
    return int(cur.rowcount or 0) > 0


def update_post(conn: Any, post_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Overwrite the given columns of one post.

    Replacing a post is an update with every field supplied. Only ``title``
    and ``body`` may be written.
    """
    changes = [(k, fields[k]) for k in ("title", "body") if k in fields]
    if not changes:
        return get_post(conn, post_id)

    changes.append(("updated_at", utcnow_iso()))
    sets = ", ".join([f"{k}=?" for k, _ in changes])
    params = [v for _, v in changes] + [int(post_id)]
    cur = conn.execute(f"UPDATE posts SET {sets} WHERE post_id=?", params)
    if int(cur.rowcount or 0) == 0:
        return None
    return get_post(conn, post_id)
