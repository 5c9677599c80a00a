"""Persistence of authentication tokens."""

from __future__ import annotations

from datetime import timedelta

from .tokens import Token, generate_token


class TokenStore:
    """Token persistence over a DB-API connection using ``?`` placeholders."""

    def __init__(self, db):
        self._db = db

    def insert(self, token: Token) -> None:
        """Store a token's hash, owner, expiry and scope."""
        with self._db:
            self._db.execute(
                "INSERT INTO tokens (hash, user_id, expiry, scope) VALUES (?, ?, ?, ?)",
                (token.hash, token.user_id, token.expiry.timestamp(), token.scope),
            )

    def create_new_token(self, user_id: int, ttl: timedelta, scope: str) -> Token:
        """Generate a token for a user, store it and return it."""
        token = generate_token(user_id, ttl, scope)
        self.insert(token)
        return token

    def delete_all_tokens_for_user(self, user_id: int, scope: str) -> None:
        """Remove every token of ``scope`` belonging to the user."""
        with self._db:
            self._db.execute(
                "DELETE FROM tokens WHERE scope = ? AND user_id = ?", (scope, user_id)
            )