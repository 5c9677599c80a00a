"""Authentication tokens: random plaintext values and their stored hashes."""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

SCOPE_AUTH = "authentication"

_TOKEN_BYTES = 32


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Token:
    """A token handed to a client; only its hash is ever stored."""

    plaintext: str
    hash: bytes = field(repr=False)
    user_id: int
    expiry: datetime
    scope: str

    def to_dict(self) -> dict:
        """Return the client-facing JSON form of the token."""
        return {"token": self.plaintext, "expiry": _rfc3339(self.expiry)}


def generate_token(user_id: int, ttl: timedelta, scope: str) -> Token:
    """Create a fresh random token for a user, valid for ``ttl``."""
    raw = secrets.token_bytes(_TOKEN_BYTES)
    plaintext = base64.b32encode(raw).decode("ascii").rstrip("=")
    return Token(
        plaintext=plaintext,
        hash=hashlib.sha256(plaintext.encode("ascii")).digest(),
        user_id=user_id,
        expiry=datetime.now(timezone.utc) + ttl,
        scope=scope,
    )