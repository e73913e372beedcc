"""
Data models for the Task Compass client.

This module defines the immutable value objects the rest of the package
works with. Tasks and tags arrive from the backend as loosely-typed JSON;
``from_dict`` turns each payload into a well-formed value, defaulting any
malformed or missing field instead of rejecting the whole response.

A task references tags by *name* only. It never owns ``Tag`` objects, so
deleting a tag leaves the name in place on every task that used it.

Key Concepts Demonstrated:
- Frozen dataclasses as immutable snapshots
- ``str``/``Enum`` dual inheritance for ergonomic comparisons
- Defensive deserialisation of untrusted JSON
- UTC normalisation so naive and aware timestamps compare safely
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class TaskPriority(str, Enum):
    """Enumeration of recognised task priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    """Enumeration of task statuses understood by the query language."""

    PENDING = "pending"
    COMPLETED = "completed"


# Unrecognised priorities rank 0, below LOW.
PRIORITY_RANK: dict[str, int] = {
    TaskPriority.HIGH.value: 3,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.LOW.value: 1,
}


def priority_rank(priority: str) -> int:
    """Return the sort rank of a priority string (0 when unrecognised)."""
    return PRIORITY_RANK.get(str(priority).lower(), 0)


def ensure_utc(value: datetime) -> datetime:
    """Normalize datetimes to timezone-aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a timestamp sent by the backend.

    Accepts ISO-8601 strings (with or without a ``Z`` suffix), the
    ``YYYY-MM-DD HH:MM:SS`` form emitted by SQL backends, bare dates and
    ``datetime`` instances.

    Args:
        value: Raw field value from a JSON payload.

    Returns:
        A UTC-aware datetime, or None if the value is empty or unparsable.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed)


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def _parse_id(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Task:
    """
    A single to-do item as seen by the client.

    Attributes:
        id: Backend identity; None until the backend has confirmed the task.
        title: Display title (non-empty titles are enforced by callers).
        description: Free text, may be empty.
        is_completed: Whether the task is done.
        priority: ``low``, ``medium`` or ``high``; other values are kept
            as-is and rank lowest when sorting.
        created_at: Creation timestamp (UTC).
        due_date: Optional deadline (UTC).
        tags: Ordered tag names; duplicates are kept.
    """

    title: str
    description: str = ""
    is_completed: bool = False
    priority: str = TaskPriority.MEDIUM.value
    due_date: datetime | None = None
    tags: tuple[str, ...] = ()
    id: int | None = None
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        # Timestamps are always UTC-aware so sort keys compare.
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        if self.due_date is not None:
            object.__setattr__(self, "due_date", ensure_utc(self.due_date))
        if not isinstance(self.priority, str):
            object.__setattr__(self, "priority", str(self.priority))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a task from a backend JSON object.

        Missing or malformed fields fall back to defaults: an absent title
        becomes an empty string, an unparsable ``created_at`` becomes the
        current time, an unparsable ``due_date`` becomes None and a missing
        or non-list ``tags`` field becomes an empty tuple. A missing priority
        defaults to ``medium``; any other value, non-strings and the empty
        string included, is kept as text and ranks lowest.

        Args:
            data: Task dictionary from the backend.

        Returns:
            A new Task instance.
        """
        raw_tags = data.get("tags")
        tags = tuple(str(tag) for tag in raw_tags if tag is not None) if isinstance(raw_tags, list) else ()

        priority = data.get("priority")
        if priority is None:
            priority = TaskPriority.MEDIUM.value
        elif not isinstance(priority, str):
            priority = str(priority)

        return cls(
            id=_parse_id(data.get("id")),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            is_completed=_parse_bool(data.get("is_completed", False)),
            priority=priority,
            created_at=parse_timestamp(data.get("created_at")) or _utc_now(),
            due_date=parse_timestamp(data.get("due_date")),
            tags=tags,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the task to the backend JSON shape.

        The ``id`` key is omitted for tasks the backend has not assigned an
        identity to yet.

        Returns:
            Dictionary containing all task fields.
        """
        data: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "is_completed": self.is_completed,
            "priority": self.priority,
            "created_at": _to_iso(self.created_at),
            "due_date": _to_iso(self.due_date),
            "tags": list(self.tags),
        }
        if self.id is not None:
            data = {"id": self.id, **data}
        return data

    def __repr__(self) -> str:
        """Return string representation of the task."""
        return f"<Task {self.id}: {self.title}>"


@dataclass(frozen=True)
class Tag:
    """
    A user-defined label.

    Attributes:
        name: Unique, case-sensitive key within the tag collection.
        color: Display colour as ``#RRGGBB``.
    """

    name: str
    color: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_color: str = "#9E9E9E") -> Tag:
        """Build a tag from a backend JSON object, defaulting a bad colour."""
        color = data.get("color")
        if not isinstance(color, str) or not color.strip():
            color = default_color
        return cls(name=str(data.get("name") or ""), color=color.strip().upper())

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "color": self.color}
