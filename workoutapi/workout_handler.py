"""HTTP handlers for reading, creating, updating and deleting workouts."""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Any, Mapping, Optional

from werkzeug.wrappers import Request, Response

from .jsonio import InvalidIDError, read_id_param, write_json
from .middleware import get_user
from .user_store import NotFoundError, User
from .workout_store import Workout, WorkoutEntry

_JSON_WHITESPACE = " \t\r\n"
_PLAIN_TEXT = "text/plain; charset=utf-8"
_UPDATABLE_FIELDS = (
    ("title", str),
    ("description", str),
    ("duration_minutes", int),
    ("calories_burned", int),
)


class _Refused(Exception):
    """Carries the response that ends a request early."""

    def __init__(self, response: Response):
        super().__init__(response.status)
        self.response = response


def _decode_json_body(request: Request) -> Any:
    text = request.get_data(as_text=True).lstrip(_JSON_WHITESPACE)
    value, _ = json.JSONDecoder().raw_decode(text)
    return value


def _text_response(message: str, status: int) -> Response:
    response = Response(message + "\n", status=status, content_type=_PLAIN_TEXT)
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _not_found() -> Response:
    return _text_response("404 page not found", HTTPStatus.NOT_FOUND)


def _internal_error() -> Response:
    return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "internal server error"})


def _workout_from_json(value: Any) -> Workout:
    return Workout() if value is None else Workout.from_dict(value)


def _entry_from_json(value: Any) -> WorkoutEntry:
    return WorkoutEntry() if value is None else WorkoutEntry.from_dict(value)


def _update_from_json(value: Any) -> dict:
    """Return the fields a partial update sets; absent or null fields are left out."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("expected a JSON object")
    changes = {}
    for name, kind in _UPDATABLE_FIELDS:
        item = value.get(name)
        if item is None:
            continue
        if isinstance(item, bool) or not isinstance(item, kind):
            raise ValueError(f"invalid value for field {name!r}")
        changes[name] = item
    entries = value.get("entries")
    if entries is not None:
        if not isinstance(entries, list):
            raise ValueError("invalid value for field 'entries'")
        changes["entries"] = [_entry_from_json(entry) for entry in entries]
    return changes


class WorkoutHandler:
    """Serves workouts, letting only their owners change them."""

    def __init__(self, workout_store, logger: Optional[logging.Logger] = None):
        self.workout_store = workout_store
        self.logger = logger or logging.getLogger(__name__)

    def handle_get_workout_by_id(self, request: Request, params: Mapping[str, str]) -> Response:
        try:
            workout_id = read_id_param(params)
        except InvalidIDError as exc:
            self.logger.error("readIDParam: %s", exc)
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid workout id"})

        try:
            workout = self.workout_store.get_workout_by_id(workout_id)
        except Exception as exc:
            self.logger.error("getWorkoutByID: %s", exc)
            return _internal_error()

        return write_json(HTTPStatus.OK, {"workout": workout})

    def handle_create_workout(self, request: Request, params: Mapping[str, str]) -> Response:
        try:
            workout = _workout_from_json(_decode_json_body(request))
        except ValueError as exc:
            self.logger.error("decodingCreateWorkout: %s", exc)
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid request sent"})

        user = get_user(request)
        if user.is_anonymous():
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "you must bed logged in"})

        workout.user_id = user.id
        try:
            created = self.workout_store.create_workout(workout)
        except Exception as exc:
            self.logger.error("createWorkout: %s", exc)
            return write_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "failed to create workout"})

        return write_json(HTTPStatus.CREATED, {"workout": created})

    def handle_update_workout_by_id(self, request: Request, params: Mapping[str, str]) -> Response:
        try:
            workout_id = read_id_param(params)
        except InvalidIDError as exc:
            self.logger.error("readIDParam: %s", exc)
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid workout update id"})

        try:
            existing = self.workout_store.get_workout_by_id(workout_id)
        except Exception as exc:
            self.logger.error("getWorkoutByID: %s", exc)
            return _internal_error()
        if existing is None:
            return _not_found()

        try:
            changes = _update_from_json(_decode_json_body(request))
        except ValueError as exc:
            self.logger.error("decodingUpdateRequest: %s", exc)
            return write_json(HTTPStatus.BAD_REQUEST, {"error": "invalid request payload"})
        for name, value in changes.items():
            setattr(existing, name, value)

        try:
            self._authorize(workout_id, get_user(request))
        except _Refused as refusal:
            return refusal.response

        try:
            self.workout_store.update_workout(existing)
        except Exception as exc:
            self.logger.error("updatingWorkout: %s", exc)
            return _internal_error()

        return write_json(HTTPStatus.OK, {"workout": existing})

    def handle_delete_workout_by_id(self, request: Request, params: Mapping[str, str]) -> Response:
        try:
            workout_id = read_id_param(params)
        except InvalidIDError:
            return _not_found()

        try:
            self._authorize(workout_id, get_user(request))
        except _Refused as refusal:
            return refusal.response

        try:
            self.workout_store.delete_workout(workout_id)
        except NotFoundError:
            return _text_response("workout not found", HTTPStatus.NOT_FOUND)
        except Exception as exc:
            self.logger.error("deletingWorkout: %s", exc)
            return _text_response("error deleting workout", HTTPStatus.INTERNAL_SERVER_ERROR)

        return Response(status=HTTPStatus.NO_CONTENT)

    def _authorize(self, workout_id: int, user: User) -> None:
        """Raise _Refused unless ``user`` is logged in and owns the workout."""
        if user.is_anonymous():
            raise _Refused(write_json(HTTPStatus.BAD_REQUEST, {"error": "you must be logged in to update"}))
        try:
            owner = self.workout_store.get_workout_owner(workout_id)
        except NotFoundError:
            raise _Refused(write_json(HTTPStatus.NOT_FOUND, {"error": "workout does not exist"})) from None
        except Exception as exc:
            self.logger.error("getWorkoutOwner: %s", exc)
            raise _Refused(_internal_error()) from exc
        if owner != user.id:
            raise _Refused(write_json(
                HTTPStatus.FORBIDDEN,
                {"error": "you are not authorized to update this workout"},
            ))