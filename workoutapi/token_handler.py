"""HTTP handler that exchanges credentials for an authentication token."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from http import HTTPStatus
from typing import Any, Iterable, Mapping, Optional

from werkzeug.wrappers import Request, Response

from .jsonio import write_json
from .tokens import SCOPE_AUTH

_TOKEN_TTL = timedelta(hours=24)
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


class TokenHandler:
    """Issues authentication tokens to users who present valid credentials."""

    def __init__(self, token_store, user_store, logger: Optional[logging.Logger] = None):
        self.token_store = token_store
        self.user_store = user_store
        self.logger = logger or logging.getLogger(__name__)

    def handle_create_token(self, request: Request, params: Mapping[str, str]) -> Response:
        try:
            credentials = _string_fields(_decode_json_body(request), ("username", "password"))
        except ValueError as exc:
            self.logger.error("CreateTokenRequest: %s", exc)
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid request payload"})

        try:
            user = self.user_store.get_user_by_username(credentials["username"])
        except Exception as exc:
            self.logger.error("GetUserByUsername: %s", exc)
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})
        if user is None:
            self.logger.error("GetUserByUsername: no such user")
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})

        try:
            matches = user.password_hash.matches(credentials["password"])
        except ValueError as exc:
            self.logger.error("PasswordHash.Matches: %s", exc)
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})

        if not matches:
            return write_json(HTTPStatus.UNAUTHORIZED, {"error": "invalid credentials"})

        try:
            token = self.token_store.create_new_token(user.id, _TOKEN_TTL, SCOPE_AUTH)
        except Exception as exc:
            self.logger.error("Creating new Token %s", exc)
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})

        return write_json(HTTPStatus.CREATED, {"auth_token": token})