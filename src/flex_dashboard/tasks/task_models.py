# src/flex_dashboard/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.ports import SERVER_TIMESTAMP, DocumentSnapshot


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    name: str
    time: str
    completed: bool
    created_at: float | None  # epoch seconds; None while the server timestamp is pending

    @classmethod
    def from_snapshot(cls, snap: DocumentSnapshot) -> Task:
        data = snap.data or {}
        return cls(
            id=snap.id,
            name=str(data.get("name") or ""),
            time=str(data.get("time") or ""),
            completed=bool(data.get("completed", False)),
            created_at=_timestamp_to_epoch(data.get("createdAt")),
        )

    @property
    def sort_key(self) -> float:
        return self.created_at or 0.0


def _timestamp_to_epoch(raw: Any) -> float | None:
    # SQLite stores epoch floats; Firestore returns datetime subclasses.
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.timestamp()
    if isinstance(raw, (int, float)):
        return float(raw)
    return None


def new_task_document(name: str, time_label: str) -> dict[str, Any]:
    return {
        "name": name,
        "time": time_label,
        "completed": False,
        "createdAt": SERVER_TIMESTAMP,
    }


# (name, time label) of the routine written for a brand-new user.
DEFAULT_TASKS: tuple[tuple[str, str], ...] = (
    ("Make Bed & Open Blinds", "6:45 AM"),
    ("Brush Teeth & Wash Face", "7:00 AM"),
    ("Get Dressed (No Pajamas!)", "7:15 AM"),
    ("Eat Breakfast & Clear Plate", "7:30 AM"),
)
