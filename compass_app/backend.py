"""
HTTP client for the task backend.

The backend exposes a single JSON endpoint. Every call is a ``POST`` whose
body carries an ``action`` discriminator (``getTasks``, ``addTag``, ...)
and every reply has the shape ``{"success": bool, "message"?: str, ...}``.

Failures are split into two families so that callers can word their
notifications differently:

* ``BackendUnavailableError`` -- the request never produced a usable
  reply (connection error, timeout, non-200 status, non-JSON body).
* ``BackendRejectedError`` -- the backend answered ``success: false``.

Local validation problems are reported with ``ValidationError`` before
any request is sent.

Key Concepts Demonstrated:
- Centralised HTTP access with a per-call timeout
- Exception hierarchy mapping transport vs. logical failures
- Lenient payload decoding (bad list entries are skipped, not fatal)
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from .models import Tag, Task

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please try again."


class BackendError(Exception):
    """Base class for failures talking to the task backend."""


class BackendUnavailableError(BackendError):
    """The backend could not be reached or returned an unusable reply."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)


class BackendRejectedError(BackendError):
    """The backend processed the request and reported ``success: false``."""

    def __init__(self, action: str, message: str):
        super().__init__(message)
        self.action = action


class ValidationError(ValueError):
    """Local input is invalid; no request was sent."""


class BackendClient:
    """
    Thin wrapper around the backend's action endpoint.

    Attributes:
        url: Absolute URL of the action endpoint.
        timeout: Per-request timeout in seconds.
        user_id: Optional identity added to every request body.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10,
        user_id: str | None = None,
        default_tag_color: str = "#9E9E9E",
        session: requests.Session | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.user_id = user_id
        self.default_tag_color = default_tag_color
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Any) -> BackendClient:
        """Build a client from a Flask config mapping."""
        return cls(
            url=config["BACKEND_URL"],
            timeout=config["BACKEND_TIMEOUT"],
            user_id=config.get("BACKEND_USER_ID"),
            default_tag_color=config.get("DEFAULT_TAG_COLOR", "#9E9E9E"),
        )

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def call(self, action: str, fallback_message: str, **fields: Any) -> dict[str, Any]:
        """
        Send one action to the backend and return the decoded reply.

        Args:
            action: Action discriminator, e.g. ``"getTasks"``.
            fallback_message: Message used when a rejection carries none.
            **fields: Additional JSON body fields.

        Returns:
            The reply dictionary (``success`` is guaranteed to be true).

        Raises:
            BackendUnavailableError: For network failures, timeouts,
                non-200 statuses and non-JSON bodies.
            BackendRejectedError: When the reply reports ``success: false``.
        """
        body: dict[str, Any] = {"action": action, **fields}
        if self.user_id is not None:
            body["user_id"] = self.user_id

        logger.info(f"POST {self.url} action={action}")
        try:
            response = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.Timeout as exc:
            logger.error(f"Backend timed out on {action}")
            raise BackendUnavailableError() from exc
        except requests.RequestException as exc:
            logger.error(f"Backend unreachable on {action}: {exc}")
            raise BackendUnavailableError() from exc

        if response.status_code != 200:
            logger.error(f"Backend returned HTTP {response.status_code} on {action}")
            raise BackendUnavailableError()

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(f"Backend returned a non-JSON body on {action}")
            raise BackendUnavailableError() from exc

        if not isinstance(payload, dict):
            logger.error(f"Backend returned a non-object body on {action}")
            raise BackendUnavailableError()

        if payload.get("success") is not True:
            message = payload.get("message")
            if not isinstance(message, str) or not message.strip():
                message = fallback_message
            logger.warning(f"Backend rejected {action}: {message}")
            raise BackendRejectedError(action, message)

        return payload

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def get_tasks(self) -> list[Task]:
        payload = self.call("getTasks", "Failed to load tasks.")
        tasks = []
        for item in _as_list(payload.get("tasks")):
            if not isinstance(item, dict):
                logger.warning(f"Skipping malformed task entry: {item!r}")
                continue
            tasks.append(Task.from_dict(item))
        return tasks

    def get_tags(self) -> list[Tag]:
        payload = self.call("getTags", "Failed to load tags.")
        tags = []
        for item in _as_list(payload.get("tags")):
            if not isinstance(item, dict) or not item.get("name"):
                logger.warning(f"Skipping malformed tag entry: {item!r}")
                continue
            tags.append(Tag.from_dict(item, default_color=self.default_tag_color))
        return tags

    def add_task(self, task: Task) -> None:
        data = task.to_dict()
        data.pop("id", None)
        self.call("addTask", "Failed to add task.", task=data)

    def update_task(self, task: Task) -> None:
        self.call("updateTask", "Failed to update task.", task=task.to_dict())

    def delete_task(self, task_id: int) -> None:
        self.call("deleteTask", "Failed to delete task.", id=task_id)

    def add_tag(self, tag: Tag) -> None:
        self.call("addTag", "Failed to add tag.", tag=tag.to_dict())

    def delete_tag(self, name: str) -> None:
        self.call("deleteTag", "Failed to delete tag.", name=name)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if value is not None:
        logger.warning(f"Expected a list payload, got {type(value).__name__}")
    return []
