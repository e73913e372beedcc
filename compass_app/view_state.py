"""
Task list view model.

Keeps track of what the task list is showing -- a named filter or a
free-text search -- and turns a ``StoreState`` into the rows a UI renders.

Selection reconciliation rules:

* Adding a tag selects it, so the (empty) tag view is shown immediately.
* Deleting the selected tag falls back to ``all``.
* A selection naming a tag that no longer exists is reset to ``all``
  whenever the view is reconciled against the current tag collection.

Tag chips resolve their colour by name against the current tags; a name
with no matching tag renders with the default colour instead of failing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from .models import Tag, Task
from .query import (
    FILTER_ALL,
    FILTER_KEYS,
    resolve_tag_color,
    search_tasks,
    select_by_filter,
    sort_tasks,
    tag_color_name,
)
from .store import MutationResult, StoreState, TaskStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskListView:
    """Current view mode of the task list."""

    selected_filter: str = FILTER_ALL
    search_text: str = ""

    @property
    def is_searching(self) -> bool:
        return bool(self.search_text.strip())


@dataclass(frozen=True)
class TagChip:
    """A tag name resolved for display."""

    name: str
    color: str
    color_name: str
    known: bool


def filter_options(tags: Iterable[Tag]) -> list[str]:
    """Built-in filter keys followed by every tag name."""
    return [*FILTER_KEYS, *(tag.name for tag in tags)]


def reconcile_selection(view: TaskListView, tags: Iterable[Tag]) -> TaskListView:
    """Reset a selection that names a tag missing from ``tags``."""
    if view.selected_filter in FILTER_KEYS:
        return view
    if any(tag.name == view.selected_filter for tag in tags):
        return view
    logger.info(f"Selected tag '{view.selected_filter}' no longer exists, showing all tasks")
    return replace(view, selected_filter=FILTER_ALL)


def visible_tasks(view: TaskListView, tasks: Iterable[Task]) -> list[Task]:
    """Tasks shown for ``view``, sorted for display."""
    if view.is_searching:
        return search_tasks(tasks, view.search_text)
    return sort_tasks(select_by_filter(view.selected_filter, list(tasks)))


def tag_chips(
    task: Task,
    tags: Iterable[Tag],
    default_color: str,
    color_names: Mapping[str, str],
) -> list[TagChip]:
    tags = list(tags)
    known_names = {tag.name for tag in tags}
    chips = []
    for name in task.tags:
        color = resolve_tag_color(name, tags, default_color)
        chips.append(
            TagChip(
                name=name,
                color=color,
                color_name=tag_color_name(color, color_names),
                known=name in known_names,
            )
        )
    return chips


class TaskListViewModel:
    """
    Binds a ``TaskStore`` to a ``TaskListView``.

    The view model subscribes to the store and reconciles the selected
    filter every time the tag slice changes.

    Args:
        store: Store providing tasks and tags.
        default_color: Colour for tag names with no matching tag.
        color_names: ``#RRGGBB`` to display-name table.
    """

    def __init__(
        self,
        store: TaskStore,
        default_color: str = "#9E9E9E",
        color_names: Mapping[str, str] | None = None,
    ):
        self.store = store
        self.default_color = default_color
        self.color_names = dict(color_names or {})
        self.view = TaskListView()
        self._last_tags = store.state.tags
        self._unsubscribe = store.subscribe(self._on_state)

    def _on_state(self, state: StoreState) -> None:
        if state.tags is not self._last_tags:
            self._last_tags = state.tags
            self.view = reconcile_selection(self.view, state.tags)

    def close(self) -> None:
        """Detach from the store."""
        self._unsubscribe()

    # -------------------------------------------------------------------------
    # View mode
    # -------------------------------------------------------------------------

    def select_filter(self, filter_key: str) -> TaskListView:
        """Switch to a named filter, leaving search mode."""
        self.view = reconcile_selection(
            TaskListView(selected_filter=filter_key), self.store.state.tags
        )
        return self.view

    def search(self, text: str) -> TaskListView:
        """Switch to free-text search; blank text returns to the named filter."""
        self.view = replace(self.view, search_text=text)
        return self.view

    # -------------------------------------------------------------------------
    # Tag commands
    # -------------------------------------------------------------------------

    def add_tag(self, tag: Tag) -> MutationResult:
        """Add a tag and select it on success."""
        result = self.store.add_tag(tag)
        if result.success:
            self.view = TaskListView(selected_filter=tag.name.strip())
        return result

    def delete_tag(self, name: str) -> MutationResult:
        """Delete a tag; the store update resets a selection on it to ``all``."""
        return self.store.delete_tag(name)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def visible_tasks(self) -> list[Task]:
        return visible_tasks(self.view, self.store.state.tasks)

    def render_task(self, task: Task) -> dict[str, Any]:
        """Task JSON enriched with resolved tag chips."""
        data = task.to_dict()
        data["tag_chips"] = [
            {
                "name": chip.name,
                "color": chip.color,
                "color_name": chip.color_name,
                "known": chip.known,
            }
            for chip in tag_chips(task, self.store.state.tags, self.default_color, self.color_names)
        ]
        return data

    def render(self, view: TaskListView | None = None) -> dict[str, Any]:
        """
        The complete task list payload.

        Args:
            view: View to render, reconciled against the current tags.
                Defaults to the view model's own ``view``.
        """
        state = self.store.state
        view = reconcile_selection(view if view is not None else self.view, state.tags)
        tasks = visible_tasks(view, state.tasks)
        return {
            "tasks": [self.render_task(task) for task in tasks],
            "count": len(tasks),
            "tags": [tag.to_dict() for tag in state.tags],
            "filters": filter_options(state.tags),
            "filter": view.selected_filter,
            "query": view.search_text,
            "loading": state.tasks_loading or state.tags_loading,
        }
