"""
Unit tests for the task list view model.
"""

from datetime import datetime, timezone

import pytest

from compass_app.models import Tag, Task
from compass_app.view_state import (
    TaskListView,
    TaskListViewModel,
    filter_options,
    reconcile_selection,
    tag_chips,
    visible_tasks,
)

pytestmark = pytest.mark.unit

COLOR_NAMES = {"#2196F3": "Blue", "#9E9E9E": "Grey"}


@pytest.fixture
def view_model(store):
    model = TaskListViewModel(store, default_color="#9E9E9E", color_names=COLOR_NAMES)
    yield model
    model.close()


def test_filter_options_list_builtins_then_tags(sample_tags):
    assert filter_options(sample_tags) == ["all", "pending", "completed", "high", "work", "urgent", "home"]


def test_reconcile_keeps_builtin_and_existing_tag(sample_tags):
    assert reconcile_selection(TaskListView("pending"), []).selected_filter == "pending"
    assert reconcile_selection(TaskListView("work"), sample_tags).selected_filter == "work"


def test_reconcile_resets_missing_tag_to_all(sample_tags):
    assert reconcile_selection(TaskListView("gym"), sample_tags).selected_filter == "all"


def test_visible_tasks_uses_search_over_filter():
    tasks = [Task(title="Buy milk", is_completed=True), Task(title="Walk dog")]
    view = TaskListView(selected_filter="completed", search_text="dog")

    assert [task.title for task in visible_tasks(view, tasks)] == ["Walk dog"]


def test_visible_tasks_sorts_filtered_tasks():
    dated = Task(title="dated", due_date=datetime(2024, 1, 1, tzinfo=timezone.utc))
    undated = Task(title="undated", priority="high")

    assert visible_tasks(TaskListView("pending"), [undated, dated]) == [dated, undated]


def test_unknown_tag_chip_uses_default_colour(sample_tags):
    task = Task(title="x", tags=("work", "deleted"))

    chips = tag_chips(task, sample_tags, "#9E9E9E", COLOR_NAMES)

    assert [(chip.name, chip.color, chip.color_name, chip.known) for chip in chips] == [
        ("work", "#2196F3", "Blue", True),
        ("deleted", "#9E9E9E", "Grey", False),
    ]


class TestTaskListViewModel:
    """Tests for selection reconciliation driven by store updates."""

    def test_adding_a_tag_selects_it(self, view_model, store):
        store.load_tags()

        result = view_model.add_tag(Tag(name=" gym ", color="#FF9800"))

        assert result.success is True
        assert view_model.view.selected_filter == "gym"

    def test_failed_add_keeps_selection(self, view_model, store):
        store.load_tags()
        view_model.select_filter("pending")

        result = view_model.add_tag(Tag(name="work", color="#FF9800"))

        assert result.success is False
        assert view_model.view.selected_filter == "pending"

    def test_deleting_selected_tag_falls_back_to_all(self, view_model, store):
        store.load_tags()
        view_model.select_filter("urgent")

        view_model.delete_tag("urgent")

        assert view_model.view.selected_filter == "all"

    def test_deleting_other_tag_keeps_selection(self, view_model, store):
        store.load_tags()
        view_model.select_filter("work")

        view_model.delete_tag("urgent")

        assert view_model.view.selected_filter == "work"

    def test_remote_tag_removal_resets_selection_on_reload(self, view_model, store, backend):
        store.load_tags()
        view_model.select_filter("home")
        backend.tags = [tag for tag in backend.tags if tag.name != "home"]

        store.load_tags()

        assert view_model.view.selected_filter == "all"

    def test_select_filter_leaves_search_mode(self, view_model, store):
        view_model.search("milk")

        view = view_model.select_filter("completed")

        assert view.search_text == ""
        assert view.is_searching is False

    def test_render_marks_deleted_tags(self, view_model, store, backend):
        backend.tasks = [Task(id=1, title="x", tags=("urgent",))]
        store.refresh()
        store.delete_tag("urgent")

        payload = view_model.render()

        assert payload["count"] == 1
        assert payload["tasks"][0]["tag_chips"] == [
            {"name": "urgent", "color": "#9E9E9E", "color_name": "Grey", "known": False}
        ]
        assert "urgent" not in payload["filters"]
