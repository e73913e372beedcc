"""
JSON endpoints for the task list.

Each endpoint drives the shared ``TaskStore``: reads refresh the store from
the backend, writes validate the request body and hand a full
``Task``/``Tag`` to the store. The view (named filter or search) is built
from each request's ``filter``/``q`` arguments, so no selection carries
over from one request to the next.

Endpoints:
    GET    /api/health            - Health check
    GET    /api/tasks             - Rendered task list (?filter=<key> or ?q=<text>)
    POST   /api/tasks             - Create a task
    PUT    /api/tasks/<id>        - Replace a task
    DELETE /api/tasks/<id>        - Delete a task
    GET    /api/tags              - List tags
    POST   /api/tags              - Create a tag (and select it)
    DELETE /api/tags/<name>       - Delete a tag

Every write response renders the view named by its own query string
(``all`` by default). Store failures map to status codes the same way
everywhere: validation 400, duplicate tag 409, backend rejection 502,
network failure 503.

The store is not thread-safe, so every endpoint that touches it runs
under the application's store lock (``serialized``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from functools import wraps
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from .. import EXTENSION_KEY, LOCK_KEY
from ..models import Tag, Task, TaskPriority, parse_timestamp
from ..query import FILTER_ALL
from ..store import (
    ERROR_CONFLICT,
    ERROR_NETWORK,
    ERROR_REJECTED,
    ERROR_VALIDATION,
    MutationResult,
)
from ..view_state import TaskListView, TaskListViewModel

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

ERROR_STATUS = {
    ERROR_VALIDATION: 400,
    ERROR_CONFLICT: 409,
    ERROR_REJECTED: 502,
    ERROR_NETWORK: 503,
}


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _view_model() -> TaskListViewModel:
    return current_app.extensions[EXTENSION_KEY]


def serialized(view_func):
    """
    Decorator that runs a view while holding the application's store lock.

    Args:
        view_func: The Flask view function touching the store.

    Returns:
        The decorated view function.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        with current_app.extensions[LOCK_KEY]:
            return view_func(*args, **kwargs)

    return wrapper


def _request_view() -> TaskListView:
    """Build the view named by the request's ``filter`` and ``q`` arguments."""
    return TaskListView(
        selected_filter=request.args.get("filter", FILTER_ALL),
        search_text=request.args.get("q", ""),
    )


def _error_response(result: MutationResult, **extra: Any) -> tuple[Response, int]:
    status = ERROR_STATUS.get(result.error, 500)
    return jsonify({"error": result.message, **extra}), status


def _result_response(
    result: MutationResult,
    success_status: int = 200,
    view: TaskListView | None = None,
) -> tuple[Response, int]:
    """Render the task list after a successful write, or the mapped error."""
    if not result.success:
        return _error_response(result)
    rendered = _view_model().render(view if view is not None else _request_view())
    return jsonify({"message": result.message, **rendered}), success_status


def validate_task_data(data: dict) -> tuple[bool, str | None]:
    """
    Validate task data from request.

    Args:
        data: Dictionary containing task data.

    Returns:
        Tuple of (is_valid, error_message).
    """
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return False, "'title' is required"
    if len(title) > 200:
        return False, "Title must be 200 characters or less"

    if "priority" in data:
        valid_priorities = [p.value for p in TaskPriority]
        if data["priority"] not in valid_priorities:
            return False, f"Invalid priority. Must be one of: {valid_priorities}"

    if data.get("due_date") and parse_timestamp(data["due_date"]) is None:
        return False, "Invalid due_date format. Use ISO format (YYYY-MM-DDTHH:MM:SS)"

    tags = data.get("tags", [])
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        return False, "'tags' must be a list of tag names"

    if "is_completed" in data and not isinstance(data["is_completed"], bool):
        return False, "'is_completed' must be a boolean"

    return True, None


def _task_from_request(data: dict, task_id: int | None = None) -> Task:
    data = {**data, "title": data["title"].strip()}
    if task_id is not None:
        data["id"] = task_id
    else:
        data.pop("id", None)
    return Task.from_dict(data)


def _known_created_at(task_id: int) -> datetime | None:
    """
    Creation time of a task as last loaded from the backend.

    The task slice is reloaded once when the task is not in it yet.
    """
    store = _view_model().store
    known = {task.id: task.created_at for task in store.state.tasks}
    if task_id not in known:
        store.load_tasks()
        known = {task.id: task.created_at for task in store.state.tasks}
    return known.get(task_id)


# -----------------------------------------------------------------------------
# API Endpoints
# -----------------------------------------------------------------------------

@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint for deployment verification."""
    return jsonify({"status": "healthy", "service": "compass"}), 200


@api_bp.route("/tasks", methods=["GET"])
@serialized
def get_tasks() -> tuple[Response, int]:
    """
    Refresh from the backend and render the task list.

    Query Parameters:
        filter: Named filter (all, pending, completed, high) or tag name.
        q: Free-text search; when non-blank it replaces the named filter.

    Returns:
        JSON task list and 200, or the stale list with an ``error`` field
        and 502/503 when the backend could not be refreshed.
    """
    view = _request_view()
    logger.info(f"GET /api/tasks - filter={view.selected_filter!r} q={view.search_text!r}")

    view_model = _view_model()
    result = view_model.store.refresh()

    if not result.success:
        return _error_response(result, **view_model.render(view))
    return jsonify(view_model.render(view)), 200


@api_bp.route("/tasks", methods=["POST"])
@serialized
def create_task() -> tuple[Response, int]:
    """
    Create a new task.

    Request Body (JSON):
        title: Task title (required)
        description: Task description (optional)
        priority: low, medium or high (optional, default: medium)
        due_date: ISO date/time (optional)
        tags: List of tag names (optional)

    Returns:
        The refreshed task list and 201, or an error.
    """
    data = request.get_json(silent=True) or {}
    is_valid, error = validate_task_data(data)
    if not is_valid:
        logger.warning(f"Task validation failed: {error}")
        return jsonify({"error": error}), 400

    result = _view_model().store.add_task(_task_from_request(data))
    return _result_response(result, success_status=201)


@api_bp.route("/tasks/<int:task_id>", methods=["PUT"])
@serialized
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Replace a task; the body must carry every field to keep.

    ``created_at`` is the one exception: when the body omits it, the
    creation time already known for the task is sent back unchanged.
    """
    data = request.get_json(silent=True) or {}
    is_valid, error = validate_task_data(data)
    if not is_valid:
        logger.warning(f"Task {task_id} validation failed: {error}")
        return jsonify({"error": error}), 400

    task = _task_from_request(data, task_id=task_id)
    if "created_at" not in data:
        created_at = _known_created_at(task_id)
        if created_at is not None:
            task = replace(task, created_at=created_at)

    result = _view_model().store.update_task(task)
    return _result_response(result)


@api_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@serialized
def delete_task(task_id: int) -> tuple[Response, int]:
    result = _view_model().store.delete_task(task_id)
    return _result_response(result)


@api_bp.route("/tags", methods=["GET"])
@serialized
def get_tags() -> tuple[Response, int]:
    store = _view_model().store
    result = store.load_tags()
    tags = [tag.to_dict() for tag in store.state.tags]
    if not result.success:
        return _error_response(result, tags=tags)
    return jsonify({"tags": tags, "count": len(tags)}), 200


@api_bp.route("/tags", methods=["POST"])
@serialized
def create_tag() -> tuple[Response, int]:
    """
    Create a tag and select it.

    Request Body (JSON):
        name: Tag name (required, unique)
        color: ``#RRGGBB`` (optional, default: DEFAULT_TAG_COLOR)
    """
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    if not isinstance(name, str):
        return jsonify({"error": "'name' is required"}), 400

    color = data.get("color") or current_app.config["DEFAULT_TAG_COLOR"]
    if not isinstance(color, str) or not COLOR_PATTERN.match(color):
        return jsonify({"error": "Invalid color. Use #RRGGBB"}), 400

    result = _view_model().store.add_tag(Tag(name=name, color=color.upper()))
    selected = TaskListView(selected_filter=name.strip())
    return _result_response(result, success_status=201, view=selected)


@api_bp.route("/tags/<path:name>", methods=["DELETE"])
@serialized
def delete_tag(name: str) -> tuple[Response, int]:
    result = _view_model().store.delete_tag(name)
    return _result_response(result)
