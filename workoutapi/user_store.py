"""Users, their passwords, and their persistence."""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import bcrypt

_ZERO_TIME = "0001-01-01T00:00:00Z"

_USER_COLUMNS = "u.id, u.username, u.email, u.password_hash, u.bio, u.created_at, u.updated_at"


class NotFoundError(LookupError):
    """Raised when a row that must exist is not found."""


@dataclass
class Password:
    """A bcrypt-hashed password, holding the plaintext only once set."""

    plaintext: Optional[str] = field(default=None, repr=False)
    hash: Optional[bytes] = field(default=None, repr=False)
    cost: int = 12

    def set(self, plaintext: str) -> None:
        """Hash and remember a new password."""
        self.hash = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(self.cost))
        self.plaintext = plaintext

    def matches(self, plaintext: str) -> bool:
        """Tell whether ``plaintext`` is this password; raise if no valid hash is held."""
        if not self.hash:
            raise ValueError("no password hash set")
        return bcrypt.checkpw(plaintext.encode("utf-8"), self.hash)


def _timestamp(moment: Optional[datetime]) -> str:
    if moment is None:
        return _ZERO_TIME
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat()


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(eq=False)
class User:
    """A registered user; compared by identity."""

    id: int = 0
    username: str = ""
    email: str = ""
    password_hash: Password = field(default_factory=Password)
    bio: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_anonymous(self) -> bool:
        return self is ANONYMOUS_USER

    def to_dict(self) -> dict:
        """Return the public JSON form, without the password."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "bio": self.bio,
            "created_at": _timestamp(self.created_at),
            "updated_at": _timestamp(self.updated_at),
        }


ANONYMOUS_USER = User()


def _row_to_user(row) -> User:
    user_id, username, email, password_hash, bio, created_at, updated_at = row
    return User(
        id=user_id,
        username=username,
        email=email,
        password_hash=Password(hash=bytes(password_hash) if password_hash is not None else None),
        bio=bio or "",
        created_at=_parse_time(created_at),
        updated_at=_parse_time(updated_at),
    )


class UserStore:
    """User persistence over a DB-API connection using ``?`` placeholders."""

    def __init__(self, db):
        self._db = db

    def create_user(self, user: User) -> None:
        """Insert a user and fill in its id and timestamps."""
        now = datetime.now(timezone.utc)
        with self._db:
            cursor = self._db.execute(
                "INSERT INTO users (username, email, password_hash, bio, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user.username, user.email, user.password_hash.hash, user.bio,
                 now.isoformat(), now.isoformat()),
            )
        user.id = cursor.lastrowid
        user.created_at = now
        user.updated_at = now

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Return the user with this username, or None."""
        row = self._db.execute(
            f"SELECT {_USER_COLUMNS} FROM users u WHERE u.username = ?", (username,)
        ).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_user(self, user: User) -> None:
        """Save username, email and bio; raise NotFoundError if the user is gone."""
        now = datetime.now(timezone.utc)
        with self._db:
            cursor = self._db.execute(
                "UPDATE users SET username = ?, email = ?, bio = ?, updated_at = ? WHERE id = ?",
                (user.username, user.email, user.bio, now.isoformat(), user.id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError("user not found")
        user.updated_at = now

    def get_user_token(self, scope: str, plaintext_token: str) -> Optional[User]:
        """Return the owner of an unexpired token of this scope, or None."""
        token_hash = hashlib.sha256(plaintext_token.encode("utf-8")).digest()
        row = self._db.execute(
            f"SELECT {_USER_COLUMNS} FROM users u "
            "INNER JOIN tokens t ON t.user_id = u.id "
            "WHERE t.hash = ? AND t.scope = ? AND t.expiry > ?",
            (token_hash, scope, time.time()),
        ).fetchone()
        return _row_to_user(row) if row is not None else None