"""Blog backend: accounts, cookie sessions and posts.

- Accounts are username + PBKDF2 password hash, stored in SQLite.
- Login and registration hand out a signed JWT in an httpOnly cookie.
- Posts are a plain CRUD resource over the same database.

See README for setup and usage.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
