"""
Unit tests for the backend HTTP client.

Key SDET Concepts Demonstrated:
- Mocking the requests layer (MagicMock session)
- Simulating ConnectionError / Timeout with side effects
- Verifying the exact request body sent over the wire
"""

from unittest.mock import MagicMock

import pytest
import requests

from compass_app.backend import (
    NETWORK_ERROR_MESSAGE,
    BackendClient,
    BackendRejectedError,
    BackendUnavailableError,
)
from compass_app.models import Tag, Task

pytestmark = pytest.mark.unit

URL = "http://task-backend/api.php"


def _response(status_code: int = 200, payload=None, json_error: bool = False) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return BackendClient(URL, timeout=3, session=session)


class TestTransport:
    """Tests for request construction and failure classification."""

    def test_posts_action_with_timeout(self, client, session):
        session.post.return_value = _response(payload={"success": True, "tasks": []})

        client.get_tasks()

        session.post.assert_called_once_with(URL, json={"action": "getTasks"}, timeout=3)

    def test_user_id_is_added_when_configured(self, session):
        session.post.return_value = _response(payload={"success": True})
        client = BackendClient(URL, user_id="alice", session=session)

        client.delete_task(5)

        assert session.post.call_args.kwargs["json"] == {
            "action": "deleteTask",
            "id": 5,
            "user_id": "alice",
        }

    @pytest.mark.parametrize("error", [requests.ConnectionError("down"), requests.Timeout("slow")])
    def test_transport_errors_become_unavailable(self, client, session, error):
        session.post.side_effect = error

        with pytest.raises(BackendUnavailableError, match=NETWORK_ERROR_MESSAGE):
            client.get_tags()

    def test_non_200_status_is_unavailable(self, client, session):
        session.post.return_value = _response(status_code=500, payload={"success": True})

        with pytest.raises(BackendUnavailableError):
            client.get_tasks()

    def test_non_json_body_is_unavailable(self, client, session):
        session.post.return_value = _response(json_error=True)

        with pytest.raises(BackendUnavailableError):
            client.get_tasks()

    def test_rejection_carries_backend_message(self, client, session):
        session.post.return_value = _response(payload={"success": False, "message": "Tag in use"})

        with pytest.raises(BackendRejectedError, match="Tag in use") as excinfo:
            client.delete_tag("work")

        assert excinfo.value.action == "deleteTag"

    def test_rejection_without_message_uses_fallback(self, client, session):
        session.post.return_value = _response(payload={"success": False})

        with pytest.raises(BackendRejectedError, match="Failed to add tag."):
            client.add_tag(Tag(name="x", color="#000000"))


class TestPayloads:
    """Tests for decoding and encoding action payloads."""

    def test_get_tasks_skips_malformed_entries(self, client, session):
        session.post.return_value = _response(
            payload={
                "success": True,
                "tasks": [
                    {"id": 1, "title": "ok", "tags": ["a"]},
                    "garbage",
                    {"id": 2},
                ],
            }
        )

        tasks = client.get_tasks()

        assert [task.id for task in tasks] == [1, 2]
        assert tasks[1].title == ""

    def test_missing_task_list_is_empty(self, client, session):
        session.post.return_value = _response(payload={"success": True})

        assert client.get_tasks() == []

    def test_get_tags_skips_nameless_entries(self, client, session):
        session.post.return_value = _response(
            payload={"success": True, "tags": [{"name": "work", "color": "#2196F3"}, {"color": "#000000"}]}
        )

        assert client.get_tags() == [Tag(name="work", color="#2196F3")]

    def test_add_task_strips_id(self, client, session):
        session.post.return_value = _response(payload={"success": True})

        client.add_task(Task(title="new", id=42))

        sent = session.post.call_args.kwargs["json"]
        assert sent["action"] == "addTask"
        assert "id" not in sent["task"]
        assert sent["task"]["title"] == "new"

    def test_update_task_sends_full_task(self, client, session):
        session.post.return_value = _response(payload={"success": True})

        client.update_task(Task(title="full", id=4, tags=("a", "b")))

        sent = session.post.call_args.kwargs["json"]["task"]
        assert sent["id"] == 4
        assert sent["tags"] == ["a", "b"]
