"""Request authentication: attaching the current user to each request."""

from __future__ import annotations

import functools
from http import HTTPStatus
from typing import Callable, Mapping

from werkzeug.wrappers import Request, Response

from .jsonio import write_json
from .tokens import SCOPE_AUTH
from .user_store import ANONYMOUS_USER, User

Handler = Callable[[Request, Mapping[str, str]], Response]

USER_ENVIRON_KEY = "workoutapi.user"


def set_user(request: Request, user: User) -> Request:
    """Attach ``user`` to the request and return the request."""
    request.environ[USER_ENVIRON_KEY] = user
    return request


def get_user(request: Request) -> User:
    """Return the user attached to the request; raise LookupError if there is none."""
    user = request.environ.get(USER_ENVIRON_KEY)
    if not isinstance(user, User):
        raise LookupError("missing user in request")
    return user


class UserMiddleware:
    """Resolves bearer tokens to users and guards routes that need one."""

    def __init__(self, user_store):
        self.user_store = user_store

    def authenticate(self, handler: Handler) -> Handler:
        """Wrap a handler so it runs with the token's user, or the anonymous user."""

        @functools.wraps(handler)
        def wrapped(request: Request, params: Mapping[str, str]) -> Response:
            response = self._resolve(request, params, handler)
            response.headers.add("Vary", "Authorization")
            return response

        return wrapped

    def _resolve(self, request: Request, params: Mapping[str, str], handler: Handler) -> Response:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return handler(set_user(request, ANONYMOUS_USER), params)

        parts = auth_header.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer":
            return write_json(HTTPStatus.UNAUTHORIZED, {"error": "invalid authorization header"})

        try:
            user = self.user_store.get_user_token(SCOPE_AUTH, parts[1])
        except Exception:
            return write_json(HTTPStatus.UNAUTHORIZED, {"error": "invalid token"})

        if user is None:
            return write_json(HTTPStatus.UNAUTHORIZED, {"error": "token expired or invalid"})

        return handler(set_user(request, user), params)

    def require_user(self, handler: Handler) -> Handler:
        """Wrap a handler so anonymous requests are refused."""

        @functools.wraps(handler)
        def wrapped(request: Request, params: Mapping[str, str]) -> Response:
            if get_user(request).is_anonymous():
                return write_json(
                    HTTPStatus.UNAUTHORIZED,
                    {"error": "you must be logged in to access this route"},
                )
            return handler(request, params)

        return wrapped