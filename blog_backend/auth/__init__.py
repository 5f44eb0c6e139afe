"""Authentication for the blog backend.

Kept deliberately small:

- Users table (username + PBKDF2 password hash)
- Stateless JWT session tokens, delivered in an httpOnly ``access_token`` cookie

Nothing about a session is stored server-side; logging out only clears the
cookie. A token stays valid until its ``exp`` passes.
"""

from .crud import authenticate, bootstrap_user_if_needed, create_user
from .deps import clear_session_cookie, read_session, set_session_cookie
from .models import RegisterRequest, User, UserView
from .security import PasswordHasher, TokenIssuer

__all__ = [
    "authenticate",
    "bootstrap_user_if_needed",
    "create_user",
    "clear_session_cookie",
    "read_session",
    "set_session_cookie",
    "RegisterRequest",
    "User",
    "UserView",
    "PasswordHasher",
    "TokenIssuer",
]
