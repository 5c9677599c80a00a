import json
import logging
import sqlite3
from http import HTTPStatus

import pytest
from werkzeug.test import Client

from workoutapi.app import Application, main, setup_routes


@pytest.fixture
def app():
    db = sqlite3.connect(":memory:")
    application = Application(db, logging.getLogger("test-app"), password_cost=4)
    yield application
    db.close()


@pytest.fixture
def client(app):
    return Client(app)


def body_of(response):
    return json.loads(response.get_data(as_text=True))


def register(client, username):
    password = "password"
    return client.post(
        "/users",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "bio": "runner",
        },
    )


def login(client, username):
    password = "password"
    response = client.post("/tokens/authentication", json={"username": username, "password": password})
    assert response.status_code == HTTPStatus.CREATED
    return body_of(response)["auth_token"]["token"]


def auth(token_text):
    return {"Authorization": f"Bearer {token_text}"}


def create_workout(client, token_text, title="Leg day"):
    response = client.post(
        "/workouts",
        json={
            "title": title,
            "description": "squats",
            "duration_minutes": 45,
            "calories_burned": 300,
            "entries": [{"exercise_name": "Squat", "sets": 3, "reps": 10, "order_index": 1}],
        },
        headers=auth(token_text),
    )
    assert response.status_code == HTTPStatus.CREATED
    return body_of(response)["workout"]


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == HTTPStatus.OK
    assert response.get_data(as_text=True) == "Status is available\n"


def test_register_returns_public_user(client):
    response = register(client, "alice")
    assert response.status_code == HTTPStatus.CREATED
    user = body_of(response)["user"]
    assert user["username"] == "alice"
    assert user["email"] == "alice@example.com"
    assert "password_hash" not in user


def test_register_rejects_bad_email(client):
    password = "password"
    response = client.post("/users", json={"username": "alice", "email": "nope", "password": password})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert body_of(response) == {"error": "invalid email format"}


def test_login_with_wrong_password(client):
    register(client, "alice")
    password = "secret"
    response = client.post("/tokens/authentication", json={"username": "alice", "password": password})
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert body_of(response) == {"error": "invalid credentials"}


def test_login_unknown_user_is_internal_error(client):
    password = "password"
    response = client.post("/tokens/authentication", json={"username": "ghost", "password": password})
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert body_of(response) == {"error": "internal server error"}


def test_workout_lifecycle(client):
    register(client, "alice")
    token_text = login(client, "alice")
    created = create_workout(client, token_text)

    fetched = client.get(f"/workouts/{created['id']}", headers=auth(token_text))
    assert fetched.status_code == HTTPStatus.OK
    assert body_of(fetched)["workout"]["title"] == "Leg day"

    updated = client.put(f"/workouts/{created['id']}", json={"title": "Upper body"}, headers=auth(token_text))
    assert updated.status_code == HTTPStatus.OK
    assert body_of(updated)["workout"]["title"] == "Upper body"
    assert body_of(updated)["workout"]["description"] == "squats"

    deleted = client.delete(f"/workouts/{created['id']}", headers=auth(token_text))
    assert deleted.status_code == HTTPStatus.NO_CONTENT

    gone = client.get(f"/workouts/{created['id']}", headers=auth(token_text))
    assert body_of(gone) == {"workout": None}


def test_other_user_cannot_delete(client):
    register(client, "alice")
    register(client, "bob")
    alice_token = login(client, "alice")
    bob_token = login(client, "bob")
    created = create_workout(client, alice_token)

    response = client.delete(f"/workouts/{created['id']}", headers=auth(bob_token))
    assert response.status_code == HTTPStatus.FORBIDDEN
    still_there = client.get(f"/workouts/{created['id']}", headers=auth(alice_token))
    assert body_of(still_there)["workout"]["id"] == created["id"]


def test_protected_route_requires_login(client):
    response = client.get("/workouts/1")
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert body_of(response) == {"error": "you must be logged in to access this route"}
    assert response.headers.get("Vary") == "Authorization"


def test_malformed_authorization_header(client):
    response = client.get("/workouts/1", headers={"Authorization": "Basic token"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert body_of(response) == {"error": "invalid authorization header"}


def test_unknown_token(client):
    response = client.get("/workouts/1", headers={"Authorization": "Bearer token"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert body_of(response) == {"error": "token expired or invalid"}


def test_unknown_route_is_not_found(client):
    response = client.get("/nowhere")
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_wrong_method_is_not_allowed(client):
    response = client.patch("/workouts/1")
    assert response.status_code == HTTPStatus.METHOD_NOT_ALLOWED
    assert "DELETE" in response.headers["Allow"]


def test_setup_routes_maps_paths_to_handlers(app):
    adapter = setup_routes(app).bind("localhost")
    endpoint, params = adapter.match("/health", method="GET")
    assert endpoint == app.health_check
    assert params == {}
    _, params = adapter.match("/workouts/7", method="DELETE")
    assert params == {"id": "7"}
    endpoint, _ = adapter.match("/users", method="POST")
    assert endpoint == app.user_handler.handle_register_user


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as excinfo:
        main(["--port", "notaport"])
    assert excinfo.value.code == 2