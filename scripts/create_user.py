"""Create an account from the command line.

Usage:
  python scripts/create_user.py --username alice --password '...'

Applies the same username rules as POST /api/auth/register.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from pydantic import ValidationError

from blog_backend.auth import PasswordHasher, RegisterRequest, create_user
from blog_backend.config import load_config
from blog_backend.db import connect, init_db
from blog_backend.errors import ConflictError


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    try:
        req = RegisterRequest(username=args.username, password=args.password)
    except ValidationError as e:
        print(f"Invalid input: {e.error_count()} error(s)")
        for err in e.errors(include_input=False):
            print(f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        return 2

    cfg = load_config()
    init_db(cfg.DB_PATH)

    try:
        with connect(cfg.DB_PATH) as conn:
            user = create_user(
                conn,
                username=req.username,
                password=req.password,
                hasher=PasswordHasher.from_config(cfg),
            )
    except ConflictError:
        print(f"Username already exists: {req.username}")
        return 1

    print("Created user:")
    print(user.serialize().model_dump())
    return 0


if __name__ == "__main__":
    sys.exit(main())
