"""HTTP handler for registering new users."""

from __future__ import annotations

import json
import logging
import re
from http import HTTPStatus
from typing import Any, Iterable, Mapping, Optional

from werkzeug.wrappers import Request, Response

from .jsonio import write_json
from .user_store import Password, User

_MAX_USERNAME_BYTES = 50
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_REGISTER_FIELDS = ("username", "email", "password", "bio")
_JSON_WHITESPACE = " \t\r\n"


def _decode_json_body(request: Request) -> Any:
    text = request.get_data(as_text=True).lstrip(_JSON_WHITESPACE)
    value, _ = json.JSONDecoder().raw_decode(text)
    return value


def _string_fields(value: Any, names: Iterable[str]) -> dict:
    if value is None:
        return {name: "" for name in names}
    if not isinstance(value, dict):
        raise ValueError("expected a JSON object")
    fields = {}
    for name in names:
        item = value.get(name)
        if item is None:
            item = ""
        elif not isinstance(item, str):
            raise ValueError(f"field {name!r} must be a string")
        fields[name] = item
    return fields


def validate_register_request(data: Mapping[str, str]) -> None:
    """Raise ValueError with a client-facing message if the registration is invalid."""
    username = data.get("username", "")
    if not username:
        raise ValueError("username is required")
    if len(username.encode("utf-8")) > _MAX_USERNAME_BYTES:
        raise ValueError("username cannot be greater than 50 characters")

    email = data.get("email", "")
    if not email:
        raise ValueError("email is required")
    if not _EMAIL_PATTERN.fullmatch(email):
        raise ValueError("invalid email format")

    if not data.get("password", ""):
        raise ValueError("password is required")


class UserHandler:
    """Registers users, storing only a bcrypt hash of their password."""

    def __init__(self, user_store, logger: Optional[logging.Logger] = None, password_cost: int = 12):
        self.user_store = user_store
        self.logger = logger or logging.getLogger(__name__)
        self.password_cost = password_cost

    def handle_register_user(self, request: Request, params: Mapping[str, str]) -> Response:
        try:
            fields = _string_fields(_decode_json_body(request), _REGISTER_FIELDS)
        except ValueError as exc:
            self.logger.error("decoding register request: %s", exc)
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid request payload"})

        try:
            validate_register_request(fields)
        except ValueError as exc:
            return write_json(HTTPStatus.BAD_REQUEST, {"error": str(exc)})

        user = User(
            username=fields["username"],
            email=fields["email"],
            bio=fields["bio"],
            password_hash=Password(cost=self.password_cost),
        )

        try:
            user.password_hash.set(fields["password"])
        except ValueError as exc:
            self.logger.error("hashing password %s", exc)
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})

        try:
            self.user_store.create_user(user)
        except Exception as exc:
            self.logger.error("registering user %s", exc)
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})

        return write_json(HTTPStatus.CREATED, {"user": user})