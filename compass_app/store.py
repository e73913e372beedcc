"""
In-memory task and tag state reconciled with the backend.

``TaskStore`` is the single owner of the client's copy of tasks and tags.
It publishes immutable ``StoreState`` snapshots to subscribers and exposes
one method per backend mutation. Each mutation is a single request; on
success the store reconciles its state, on failure it leaves the state
untouched and returns a ``MutationResult`` describing what went wrong.

Reconciliation policy:

* Task mutations (add, update, delete) are followed by a full task
  reload, because only the backend knows the resulting identities.
* ``add_tag`` appends the confirmed tag locally without a reload.
* ``delete_tag`` removes the tag locally, then reloads tasks.

Tasks and tags are separate slices. Every load or local patch of a slice
takes a sequence number; a response carrying an older number than the
last one applied to its slice is discarded, so a slow reply can never
overwrite newer data. After ``dispose`` no response is applied at all.

Key Concepts Demonstrated:
- Explicit state container with a subscription interface
- Immutable snapshots via ``dataclasses.replace``
- Sequence-numbered responses to drop stale results
- ``try``/``finally`` scoped loading flags
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from .backend import (
    BackendClient,
    BackendError,
    BackendRejectedError,
    BackendUnavailableError,
    ValidationError,
)
from .models import Tag, Task

logger = logging.getLogger(__name__)

TASKS = "tasks"
TAGS = "tags"

ERROR_VALIDATION = "validation"
ERROR_CONFLICT = "conflict"
ERROR_NETWORK = "network"
ERROR_REJECTED = "rejected"


@dataclass(frozen=True)
class StoreState:
    """Immutable snapshot of everything the task list renders."""

    tasks: tuple[Task, ...] = ()
    tags: tuple[Tag, ...] = ()
    tasks_loading: bool = False
    tags_loading: bool = False

    def has_tag(self, name: str) -> bool:
        return any(tag.name == name for tag in self.tags)


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a store operation.

    Attributes:
        success: Whether the operation completed.
        message: User-facing notification text, if any.
        error: One of ``validation``, ``conflict``, ``network`` or
            ``rejected`` on failure; None on success.
    """

    success: bool
    message: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, message: str | None = None) -> MutationResult:
        return cls(success=True, message=message)

    @classmethod
    def from_exception(cls, exc: Exception) -> MutationResult:
        if isinstance(exc, BackendUnavailableError):
            kind = ERROR_NETWORK
        elif isinstance(exc, BackendRejectedError):
            kind = ERROR_REJECTED
        else:
            kind = ERROR_VALIDATION
        return cls(success=False, message=str(exc), error=kind)


Subscriber = Callable[[StoreState], None]


class TaskStore:
    """
    Holds tasks and tags fetched from the backend.

    Args:
        backend: Client used for every remote call.
    """

    def __init__(self, backend: BackendClient):
        self._backend = backend
        self._state = StoreState()
        self._subscribers: list[Subscriber] = []
        self._disposed = False
        self._issued = {TASKS: 0, TAGS: 0}
        self._applied = {TASKS: 0, TAGS: 0}
        self._in_flight = {TASKS: 0, TAGS: 0}

    # -------------------------------------------------------------------------
    # State and subscriptions
    # -------------------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with every new state snapshot.

        Returns:
            A function that removes the callback again.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def dispose(self) -> None:
        """Stop applying responses and drop all subscribers."""
        self._disposed = True
        self._subscribers.clear()
        logger.info("Task store disposed")

    def _set_state(self, state: StoreState) -> None:
        self._state = state
        for callback in list(self._subscribers):
            callback(state)

    def _next_sequence(self, slice_name: str) -> int:
        self._issued[slice_name] += 1
        return self._issued[slice_name]

    def _apply(self, slice_name: str, sequence: int, **changes) -> bool:
        """Apply ``changes`` unless the store is disposed or the data is stale."""
        if self._disposed:
            logger.info(f"Ignoring {slice_name} update #{sequence}: store disposed")
            return False
        if sequence < self._applied[slice_name]:
            logger.warning(
                f"Discarding stale {slice_name} update #{sequence} "
                f"(already applied #{self._applied[slice_name]})"
            )
            return False
        self._applied[slice_name] = sequence
        self._set_state(replace(self._state, **changes))
        return True

    def _publish_loading(self) -> None:
        if self._disposed:
            return
        tasks_loading = self._in_flight[TASKS] > 0
        tags_loading = self._in_flight[TAGS] > 0
        if (tasks_loading, tags_loading) != (self._state.tasks_loading, self._state.tags_loading):
            self._set_state(
                replace(self._state, tasks_loading=tasks_loading, tags_loading=tags_loading)
            )

    @contextmanager
    def _loading(self, slice_name: str) -> Iterator[None]:
        self._in_flight[slice_name] += 1
        self._publish_loading()
        try:
            yield
        finally:
            self._in_flight[slice_name] -= 1
            self._publish_loading()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_tasks(self) -> MutationResult:
        """Replace the task slice with the backend's current tasks."""
        sequence = self._next_sequence(TASKS)
        with self._loading(TASKS):
            try:
                tasks = self._backend.get_tasks()
            except BackendError as exc:
                return MutationResult.from_exception(exc)
            if self._apply(TASKS, sequence, tasks=tuple(tasks)):
                logger.info(f"Loaded {len(tasks)} tasks")
        return MutationResult.ok()

    def load_tags(self) -> MutationResult:
        """Replace the tag slice with the backend's current tags."""
        sequence = self._next_sequence(TAGS)
        with self._loading(TAGS):
            try:
                tags = self._backend.get_tags()
            except BackendError as exc:
                return MutationResult.from_exception(exc)
            if self._apply(TAGS, sequence, tags=tuple(tags)):
                logger.info(f"Loaded {len(tags)} tags")
        return MutationResult.ok()

    def refresh(self) -> MutationResult:
        """Load both slices; the first failure (if any) is returned."""
        tasks_result = self.load_tasks()
        tags_result = self.load_tags()
        return tasks_result if not tasks_result.success else tags_result

    # -------------------------------------------------------------------------
    # Task mutations
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_task(task: Task) -> None:
        if not task.title or not task.title.strip():
            raise ValidationError("Title is required")

    def _reload_after(self, action: str) -> None:
        reload = self.load_tasks()
        if not reload.success:
            logger.warning(f"{action} succeeded but the task reload failed: {reload.message}")

    def add_task(self, task: Task) -> MutationResult:
        """
        Create a task on the backend, then reload all tasks.

        The task is sent without an id; the reload is how the new identity
        becomes known locally.
        """
        try:
            self._validate_task(task)
            self._backend.add_task(replace(task, id=None))
        except (ValidationError, BackendError) as exc:
            return MutationResult.from_exception(exc)

        logger.info(f"Task added: {task.title}")
        self._reload_after("addTask")
        return MutationResult.ok("Task added")

    def update_task(self, task: Task) -> MutationResult:
        """
        Replace a task on the backend, then reload all tasks.

        Tasks without an id have never been saved; nothing is sent for them.
        """
        if task.id is None:
            logger.warning("Ignoring update for a task without an id")
            return MutationResult(
                success=False, message="Task has not been saved yet", error=ERROR_VALIDATION
            )
        try:
            self._validate_task(task)
            self._backend.update_task(task)
        except (ValidationError, BackendError) as exc:
            return MutationResult.from_exception(exc)

        logger.info(f"Task {task.id} updated")
        self._reload_after("updateTask")
        return MutationResult.ok("Task updated")

    def delete_task(self, task_id: int) -> MutationResult:
        """Delete a task on the backend, then reload all tasks."""
        try:
            self._backend.delete_task(task_id)
        except BackendError as exc:
            return MutationResult.from_exception(exc)

        logger.info(f"Task {task_id} deleted")
        self._reload_after("deleteTask")
        return MutationResult.ok("Task deleted")

    # -------------------------------------------------------------------------
    # Tag mutations
    # -------------------------------------------------------------------------

    def add_tag(self, tag: Tag) -> MutationResult:
        """
        Create a tag on the backend and append it locally.

        Empty and duplicate names are rejected before any request is sent.
        """
        name = tag.name.strip()
        if not name:
            return MutationResult.from_exception(ValidationError("Tag name cannot be empty"))
        if self._state.has_tag(name):
            logger.warning(f"Rejecting duplicate tag: {name}")
            return MutationResult(success=False, message="Tag already exists", error=ERROR_CONFLICT)

        tag = replace(tag, name=name)
        sequence = self._next_sequence(TAGS)
        try:
            self._backend.add_tag(tag)
        except BackendError as exc:
            return MutationResult.from_exception(exc)

        self._apply(TAGS, sequence, tags=self._state.tags + (tag,))
        logger.info(f"Tag added: {name}")
        return MutationResult.ok("Tag added")

    def delete_tag(self, name: str) -> MutationResult:
        """
        Delete a tag on the backend, drop it locally and reload tasks.

        Tasks that carry the tag keep its name.
        """
        sequence = self._next_sequence(TAGS)
        try:
            self._backend.delete_tag(name)
        except BackendError as exc:
            return MutationResult.from_exception(exc)

        remaining = tuple(tag for tag in self._state.tags if tag.name != name)
        self._apply(TAGS, sequence, tags=remaining)
        logger.info(f"Tag deleted: {name}")
        self._reload_after("deleteTag")
        return MutationResult.ok("Tag deleted")
