# workoutapi

A small JSON HTTP API for keeping track of workouts. Users register with a
username, e-mail address and password. They exchange their credentials for
a bearer token and use that token to create, read, update and delete
workouts. Everything is stored in one SQLite database.

## Running the server

```
workoutapi --port 8080 --db workouts.db
```

- `--port` (or `-port`) is the port to listen on. It defaults to `8080`.
- `--db` (or `-db`) is the path of the SQLite database file. It defaults to
  `workouts.db`.

The server listens on all interfaces and uses Werkzeug's single-threaded
development server. It logs to standard output with the date and time in
front of each line, starting with `We are running on port 8080`. The tables
(`users`, `tokens`, `workouts`, `workout_entries`) are created if they do
not exist yet.

## Endpoints

| Method | Path                     | Auth required | Purpose                          |
|--------|--------------------------|---------------|----------------------------------|
| GET    | `/health`                | no            | Liveness check                   |
| POST   | `/users`                 | no            | Register a new user              |
| POST   | `/tokens/authentication` | no            | Obtain a 24-hour bearer token    |
| GET    | `/workouts/{id}`         | yes           | Fetch a workout with its entries |
| POST   | `/workouts`              | yes           | Create a workout                 |
| PUT    | `/workouts/{id}`         | yes (owner)   | Update a workout                 |
| DELETE | `/workouts/{id}`         | yes (owner)   | Delete a workout                 |

Response bodies are JSON indented by one space, and errors have the form
`{"error": "..."}`. These responses are plain text instead:

- `/health` answers `Status is available`.
- An unknown path answers `404 page not found`.
- An update of a workout that does not exist answers `404 page not found`.
- A delete with an id that is not an integer answers `404 page not found`.
- A delete that fails answers `error deleting workout` with status `500`.
- A successful delete answers `204 No Content` with an empty body.

A known path with the wrong method answers `405` with an `Allow` header.

### Registering

```
POST /users
{"username": "alice", "email": "alice@example.com", "password": "password", "bio": "runner"}
```

The request is checked in this order. The first failed check answers `400`:

- `username` must be present and at most 50 bytes long in UTF-8.
- `email` must be present and match
  `[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}`.
- `password` must be present.

A body that is not a JSON object with string fields answers `400` with
`invalid request payload`. The password is stored as a bcrypt hash with
cost 12. The response is `201` with
`{"user": {"id", "username", "email", "bio", "created_at", "updated_at"}}`.
The password hash is never returned.

### Getting a token

```
POST /tokens/authentication
{"username": "alice", "password": "password"}
```

The response is `201` with
`{"auth_token": {"token": "...", "expiry": "..."}}`. The expiry is an
RFC 3339 UTC time 24 hours ahead. Only a SHA-256 hash of the token is
stored. A wrong password answers `401` with `invalid credentials`. An
unknown username answers `500` with `internal server error`.

Send the token on later requests:

```
Authorization: Bearer token
```

On the protected routes the server answers `401` in these cases:

- `invalid authorization header`: the header is not exactly `Bearer <token>`.
- `token expired or invalid`: the token is unknown or has expired.
- `you must be logged in to access this route`: there is no
  `Authorization` header.

Every response from a protected route carries `Vary: Authorization`.

### Workouts

A workout has `id`, `user_id`, `title`, `description`, `duration_minutes`,
`calories_burned` and a list of `entries`. Each entry has these fields:

- `id`
- `exercise_name`
- `sets`
- `reps`, which may be null
- `duration_seconds`, which may be null
- `weight`, which may be null
- `notes`
- `order_index`

The workout is created for the user who owns the token. Entries come back
ordered by `order_index`. Fetching an id that does not exist answers `200`
with `{"workout": null}`. An id that is not a 64-bit integer answers `400`.

An update changes only the fields that the request supplies and that are
not null. If the request supplies `entries`, the new list replaces all
existing entries. Only the owner of a workout may update or delete it.
Anyone else gets `403` with
`you are not authorized to update this workout`.

## Using it as a WSGI application

`workoutapi.app.Application` is a WSGI callable built on a `sqlite3`
connection. It creates the tables on construction:

```python
import sqlite3

from workoutapi.app import Application

db = sqlite3.connect("workouts.db", check_same_thread=False)
app = Application(db)  # optional: logger=..., password_cost=12
```

`workoutapi.app.setup_routes(app)` builds the Werkzeug URL map that the
application dispatches on. The stores (`UserStore`, `TokenStore`,
`WorkoutStore`) can also be used on their own with any connection that has
an `execute` method and `?` placeholders.

## What it does not do

- It stores data in SQLite only and has no schema migrations beyond
  creating missing tables.
- There is no route to list workouts, edit a user, or revoke tokens.
  `UserStore.update_user` and `TokenStore.delete_all_tokens_for_user` exist
  but no endpoint calls them.
- The bundled command runs a development server without TLS or concurrency.
  Use a WSGI server for anything else.