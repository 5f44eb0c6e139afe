from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field

from .security import MAX_PASSWORD_LENGTH, PasswordHasher, TokenIssuer


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=20, pattern=r"^[A-Za-z0-9]+$")
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


class UserView(BaseModel):
    """The only shape in which a user leaves the server."""

    id: str
    username: str


@dataclass
class User:
    """One account as held in memory.

    ``hashed_password`` is excluded from ``repr`` and from :meth:`serialize`.
    Any new field added here stays private until it is copied into
    :class:`UserView` by name.
    """

    username: str
    id: Optional[str] = None
    hashed_password: Optional[str] = field(default=None, repr=False)
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "User":
        return cls(
            id=str(row["user_id"]),
            username=str(row["username"]),
            hashed_password=str(row["password_hash"]),
            created_at=row["created_at"],
        )

    def set_password(self, password: str, hasher: PasswordHasher) -> None:
        self.hashed_password = hasher.hash(password)

    def check_password(self, password: str, hasher: PasswordHasher) -> bool:
        if not self.hashed_password:
            return False
        return hasher.verify(password, self.hashed_password)

    def serialize(self) -> UserView:
        if self.id is None:
            raise ValueError("user_not_persisted")
        return UserView(id=self.id, username=self.username)

    def generate_token(self, issuer: TokenIssuer) -> str:
        if self.id is None:
            raise ValueError("user_not_persisted")
        return issuer.issue({"sub": self.id, "username": self.username})
