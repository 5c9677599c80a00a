"""Workouts, their entries, and their persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .user_store import NotFoundError

_ENTRY_INSERT = (
    "INSERT INTO workout_entries "
    "(workout_id, exercise_name, sets, reps, duration_seconds, weight, notes, order_index) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
)


def _take(data: Mapping[str, Any], key: str, kinds, default):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ValueError(f"invalid value for field {key!r}")
    return value


def _mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return data


@dataclass
class WorkoutEntry:
    """One exercise within a workout."""

    id: int = 0
    exercise_name: str = ""
    sets: int = 0
    reps: Optional[int] = None
    duration_seconds: Optional[int] = None
    weight: Optional[float] = None
    notes: str = ""
    order_index: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "exercise_name": self.exercise_name,
            "sets": self.sets,
            "reps": self.reps,
            "duration_seconds": self.duration_seconds,
            "weight": self.weight,
            "notes": self.notes,
            "order_index": self.order_index,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkoutEntry":
        """Build an entry from decoded JSON; raise ValueError on wrong types."""
        data = _mapping(data)
        weight = _take(data, "weight", (int, float), None)
        return cls(
            id=_take(data, "id", int, 0),
            exercise_name=_take(data, "exercise_name", str, ""),
            sets=_take(data, "sets", int, 0),
            reps=_take(data, "reps", int, None),
            duration_seconds=_take(data, "duration_seconds", int, None),
            weight=float(weight) if weight is not None else None,
            notes=_take(data, "notes", str, ""),
            order_index=_take(data, "order_index", int, 0),
        )


@dataclass
class Workout:
    """A workout owned by a user, with its ordered entries."""

    id: int = 0
    user_id: int = 0
    title: str = ""
    description: str = ""
    duration_minutes: int = 0
    calories_burned: int = 0
    entries: List[WorkoutEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "calories_burned": self.calories_burned,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workout":
        """Build a workout from decoded JSON; raise ValueError on wrong types."""
        data = _mapping(data)
        entries = _take(data, "entries", list, [])
        return cls(
            id=_take(data, "id", int, 0),
            user_id=_take(data, "user_id", int, 0),
            title=_take(data, "title", str, ""),
            description=_take(data, "description", str, ""),
            duration_minutes=_take(data, "duration_minutes", int, 0),
            calories_burned=_take(data, "calories_burned", int, 0),
            entries=[WorkoutEntry.from_dict(entry) for entry in entries],
        )


def _entry_params(workout_id: int, entry: WorkoutEntry) -> tuple:
    return (
        workout_id,
        entry.exercise_name,
        entry.sets,
        entry.reps,
        entry.duration_seconds,
        entry.weight,
        entry.notes,
        entry.order_index,
    )


class WorkoutStore:
    """Workout persistence over a DB-API connection using ``?`` placeholders."""

    def __init__(self, db):
        self._db = db

    def create_workout(self, workout: Workout) -> Workout:
        """Insert a workout and its entries in one transaction, filling in ids."""
        with self._db:
            cursor = self._db.execute(
                "INSERT INTO workouts (user_id, title, description, duration_minutes, calories_burned) "
                "VALUES (?, ?, ?, ?, ?)",
                (workout.user_id, workout.title, workout.description,
                 workout.duration_minutes, workout.calories_burned),
            )
            workout_id = cursor.lastrowid
            entry_ids = [
                self._db.execute(_ENTRY_INSERT, _entry_params(workout_id, entry)).lastrowid
                for entry in workout.entries
            ]
        workout.id = workout_id
        for entry, entry_id in zip(workout.entries, entry_ids):
            entry.id = entry_id
        return workout

    def get_workout_by_id(self, workout_id: int) -> Optional[Workout]:
        """Return the workout with its entries ordered by index, or None."""
        row = self._db.execute(
            "SELECT id, user_id, title, description, duration_minutes, calories_burned "
            "FROM workouts WHERE id = ?",
            (workout_id,),
        ).fetchone()
        if row is None:
            return None
        workout = Workout(*row)
        entry_rows = self._db.execute(
            "SELECT id, exercise_name, sets, reps, duration_seconds, weight, notes, order_index "
            "FROM workout_entries WHERE workout_id = ? ORDER BY order_index",
            (workout_id,),
        ).fetchall()
        workout.entries = [WorkoutEntry(*entry_row) for entry_row in entry_rows]
        return workout

    def update_workout(self, workout: Workout) -> None:
        """Save a workout and replace all its entries; raise NotFoundError if it is gone."""
        with self._db:
            cursor = self._db.execute(
                "UPDATE workouts SET title = ?, description = ?, duration_minutes = ?, "
                "calories_burned = ? WHERE id = ?",
                (workout.title, workout.description, workout.duration_minutes,
                 workout.calories_burned, workout.id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("workout not found")
            self._db.execute("DELETE FROM workout_entries WHERE workout_id = ?", (workout.id,))
            for entry in workout.entries:
                self._db.execute(_ENTRY_INSERT, _entry_params(workout.id, entry))

    def delete_workout(self, workout_id: int) -> None:
        """Delete a workout; raise NotFoundError if there was none."""
        with self._db:
            cursor = self._db.execute("DELETE FROM workouts WHERE id = ?", (workout_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("workout not found")

    def get_workout_owner(self, workout_id: int) -> int:
        """Return the id of the user owning a workout; raise NotFoundError if none."""
        row = self._db.execute(
            "SELECT user_id FROM workouts WHERE id = ?", (workout_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError("workout not found")
        return row[0]