import json
import sqlite3
from http import HTTPStatus

import pytest
from werkzeug.test import EnvironBuilder

from workoutapi.user_handler import UserHandler, validate_register_request
from workoutapi.user_store import UserStore

_SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash BLOB NOT NULL,
    bio TEXT,
    created_at TEXT,
    updated_at TEXT
);
"""


@pytest.fixture
def user_store():
    connection = sqlite3.connect(":memory:")
    connection.executescript(_SCHEMA)
    yield UserStore(connection)
    connection.close()


@pytest.fixture
def handler(user_store):
    return UserHandler(user_store, password_cost=4)


def _post(body):
    data = body if isinstance(body, str) else json.dumps(body)
    return EnvironBuilder(method="POST", path="/users", data=data).get_request()


def _body(response):
    return json.loads(response.get_data(as_text=True))


def _registration(**overrides):
    data = {"username": "alice", "email": "alice@example.com", "password": "password", "bio": ""}
    data.update(overrides)
    return data


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"username": ""}, "username is required"),
        ({"username": "a" * 51}, "username cannot be greater than 50 characters"),
        ({"username": "\u00e9" * 26}, "username cannot be greater than 50 characters"),
        ({"email": ""}, "email is required"),
        ({"email": "not-an-email"}, "invalid email format"),
        ({"email": "alice@example.c"}, "invalid email format"),
        ({"email": "alice@example.com\n"}, "invalid email format"),
        ({"password": ""}, "password is required"),
    ],
)
def test_validate_register_request_errors(overrides, message):
    with pytest.raises(ValueError) as excinfo:
        validate_register_request(_registration(**overrides))
    assert str(excinfo.value) == message


def test_register_stores_user_with_hashed_password(handler, user_store):
    response = handler.handle_register_user(_post(_registration(username="a" * 50, bio="runner")), {})
    assert response.status_code == HTTPStatus.CREATED
    user = _body(response)["user"]
    assert user["username"] == "a" * 50
    assert user["email"] == "alice@example.com"
    assert user["bio"] == "runner"
    assert "password" not in json.dumps(user)
    stored = user_store.get_user_by_username("a" * 50)
    assert stored.id == user["id"]
    assert stored.password_hash.matches("password")
    assert not stored.password_hash.matches("secret")


def test_validation_error_reaches_client(handler):
    response = handler.handle_register_user(_post(_registration(email="not-an-email")), {})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert _body(response) == {"error": "invalid email format"}


@pytest.mark.parametrize("payload", ["", "{", '"alice"', '{"bio": 3}'])
def test_bad_payload_is_bad_request(handler, payload):
    response = handler.handle_register_user(_post(payload), {})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert _body(response) == {"error": "invalid request payload"}


def test_duplicate_username_is_internal_error(handler):
    first = handler.handle_register_user(_post(_registration()), {})
    assert first.status_code == HTTPStatus.CREATED
    second = handler.handle_register_user(_post(_registration(email="other@example.com")), {})
    assert second.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert _body(second) == {"error": "internal server error"}