import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Pick up a local .env file if present; real environment variables win.
load_dotenv()


DEV_JWT_SECRET = "dev_change_me_to_a_long_random_value"


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Values are read from the environment (or a .env file) when this module is
    imported. Tests build a ``Config`` directly with keyword overrides.
    """

    # -----------------
    # Storage
    # -----------------
    DB_PATH: str = os.environ.get("BLOG_DB_PATH", "./blog_backend.sqlite")

    # -----------------
    # Auth (JWT session tokens)
    # -----------------
    # In production, AUTH_JWT_SECRET MUST be set to a strong random value.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", DEV_JWT_SECRET)
    AUTH_JWT_ALGORITHM: str = os.environ.get("AUTH_JWT_ALGORITHM", "HS256")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "10080"))  # 7 days

    # PBKDF2 iteration count. Raising it makes every login slower, on purpose.
    AUTH_HASH_ROUNDS: int = int(os.environ.get("AUTH_HASH_ROUNDS", "29000"))

    # Optional first account, created only when the users table is empty.
    AUTH_BOOTSTRAP_USERNAME: str = os.environ.get("AUTH_BOOTSTRAP_USERNAME", "")
    AUTH_BOOTSTRAP_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_PASSWORD", "")

    # -----------------
    # Session cookie
    # -----------------
    AUTH_COOKIE_NAME: str = os.environ.get("AUTH_COOKIE_NAME", "access_token")
    AUTH_COOKIE_DOMAIN: str | None = (os.environ.get("AUTH_COOKIE_DOMAIN") or "").strip() or None
    AUTH_COOKIE_PATH: str = os.environ.get("AUTH_COOKIE_PATH", "/")
    AUTH_COOKIE_SAMESITE: str = os.environ.get("AUTH_COOKIE_SAMESITE", "lax")  # lax|strict|none

    # If AUTH_COOKIE_SECURE is unset, cookies are Secure when PUBLIC_APP_URL is https.
    PUBLIC_APP_URL: str = os.environ.get("PUBLIC_APP_URL", "http://localhost:3000")
    AUTH_COOKIE_SECURE: bool = (
        _env_bool("AUTH_COOKIE_SECURE", None)
        if _env_bool("AUTH_COOKIE_SECURE", None) is not None
        else PUBLIC_APP_URL.lower().startswith("https://")
    )

    # -----------------
    # CORS (development)
    # -----------------
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    @property
    def token_ttl_seconds(self) -> int:
        return max(1, int(self.AUTH_TOKEN_EXPIRE_MINUTES)) * 60


def load_config() -> Config:
    return Config()
