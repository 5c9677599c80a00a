"""The web application: wiring of stores, handlers and routes, and the server command."""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from http import HTTPStatus
from typing import Mapping, Optional

from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.serving import run_simple
from werkzeug.wrappers import Request, Response

from .middleware import UserMiddleware
from .token_handler import TokenHandler
from .token_store import TokenStore
from .user_handler import UserHandler
from .user_store import UserStore
from .workout_handler import WorkoutHandler
from .workout_store import WorkoutStore

_PLAIN_TEXT = "text/plain; charset=utf-8"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL,
    password_hash BLOB NOT NULL,
    bio TEXT NOT NULL DEFAULT '',
    created_at TEXT,
    updated_at TEXT
);
CREATE TABLE IF NOT EXISTS tokens (
    hash BLOB PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    expiry REAL NOT NULL,
    scope TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS workouts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    duration_minutes INTEGER NOT NULL,
    calories_burned INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS workout_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    workout_id INTEGER NOT NULL REFERENCES workouts(id) ON DELETE CASCADE,
    exercise_name TEXT NOT NULL,
    sets INTEGER NOT NULL,
    reps INTEGER,
    duration_seconds INTEGER,
    weight REAL,
    notes TEXT NOT NULL DEFAULT '',
    order_index INTEGER NOT NULL
);
"""


def _ensure_schema(db) -> None:
    db.execute("PRAGMA foreign_keys = ON")
    db.executescript(_SCHEMA)


def _not_found() -> Response:
    response = Response("404 page not found\n", status=HTTPStatus.NOT_FOUND, content_type=_PLAIN_TEXT)
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


class Application:
    """A WSGI application serving users, tokens and workouts from one SQLite database."""

    def __init__(self, db, logger: Optional[logging.Logger] = None, password_cost: int = 12):
        _ensure_schema(db)
        self.db = db
        self.logger = logger or logging.getLogger("workoutapi")

        workout_store = WorkoutStore(db)
        user_store = UserStore(db)
        token_store = TokenStore(db)

        self.workout_handler = WorkoutHandler(workout_store, self.logger)
        self.user_handler = UserHandler(user_store, self.logger, password_cost=password_cost)
        self.token_handler = TokenHandler(token_store, user_store, self.logger)
        self.middleware = UserMiddleware(user_store)
        self.routes = setup_routes(self)

    def health_check(self, request: Request, params: Mapping[str, str]) -> Response:
        return Response("Status is available\n", content_type=_PLAIN_TEXT)

    def __call__(self, environ, start_response):
        request = Request(environ)
        adapter = self.routes.bind_to_environ(environ)
        try:
            handler, params = adapter.match()
        except NotFound:
            response = _not_found()
        except MethodNotAllowed as exc:
            response = Response(status=HTTPStatus.METHOD_NOT_ALLOWED)
            response.headers["Allow"] = ", ".join(sorted(exc.valid_methods or ()))
        except HTTPException as exc:
            response = exc.get_response(environ)
        else:
            response = handler(request, params)
        return response(environ, start_response)


def setup_routes(app: Application) -> Map:
    """Build the URL map whose endpoints are the handlers that serve each route."""

    def protected(handler):
        return app.middleware.authenticate(app.middleware.require_user(handler))

    workouts = app.workout_handler
    return Map(
        [
            Rule("/workouts/<id>", endpoint=protected(workouts.handle_get_workout_by_id), methods=["GET"]),
            Rule("/workouts", endpoint=protected(workouts.handle_create_workout), methods=["POST"]),
            Rule("/workouts/<id>", endpoint=protected(workouts.handle_update_workout_by_id), methods=["PUT"]),
            Rule("/workouts/<id>", endpoint=protected(workouts.handle_delete_workout_by_id), methods=["DELETE"]),
            Rule("/health", endpoint=app.health_check, methods=["GET"]),
            Rule("/users", endpoint=app.user_handler.handle_register_user, methods=["POST"]),
            Rule("/tokens/authentication", endpoint=app.token_handler.handle_create_token, methods=["POST"]),
        ],
        strict_slashes=False,
        merge_slashes=False,
    )


def main(argv=None) -> None:
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Workout tracking API server.")
    parser.add_argument("-port", "--port", type=int, default=8080, help="server port")
    parser.add_argument("-db", "--db", default="workouts.db", help="path of the SQLite database")
    args = parser.parse_args(argv)

    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format="%(asctime)s %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
    )

    db = sqlite3.connect(args.db, check_same_thread=False)
    try:
        app = Application(db)
        app.logger.info("We are running on port %d", args.port)
        run_simple("0.0.0.0", args.port, app, threaded=False)
    finally:
        db.close()


if __name__ == "__main__":
    main()