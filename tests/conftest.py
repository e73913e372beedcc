"""
Shared pytest fixtures for the Task Compass test suite.

This module contains fixtures that are shared across all test modules.
Fixtures follow the Arrange-Act-Assert (AAA) pattern and ensure
test isolation by providing a fresh fake backend and store for each test.

Key Concepts Demonstrated:
- Fixture scopes and dependencies
- Test data factories built on Faker
- Dependency injection of a fake backend into the Flask app
"""

import os
from datetime import datetime, timezone

import pytest
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from compass_app import create_app
from compass_app.models import Tag, Task
from compass_app.store import TaskStore
from tests.fakes import FakeBackend


# Initialize Faker for generating test data
fake = Faker()


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def task_factory():
    """
    Factory fixture for building Task values.

    Unspecified fields get Faker-generated values, so tests only spell out
    the fields they actually assert on.

    Example:
        def test_something(task_factory):
            task = task_factory(priority="high")
            assert task.title
    """

    def _create_task(**kwargs) -> Task:
        defaults = {
            "title": fake.sentence(nb_words=4).rstrip("."),
            "description": fake.text(max_nb_chars=80),
            "priority": fake.random_element(["low", "medium", "high"]),
            "is_completed": False,
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        defaults.update(kwargs)
        return Task(**defaults)

    return _create_task


@pytest.fixture
def sample_tags() -> list[Tag]:
    return [
        Tag(name="work", color="#2196F3"),
        Tag(name="urgent", color="#F44336"),
        Tag(name="home", color="#4CAF50"),
    ]


# -----------------------------------------------------------------------------
# Store Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def backend(sample_tags):
    """Provide an in-memory backend pre-loaded with the sample tags."""
    return FakeBackend(tags=sample_tags)


@pytest.fixture
def store(backend):
    """Provide a TaskStore wired to the fake backend."""
    task_store = TaskStore(backend)
    yield task_store
    task_store.dispose()


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def app(backend):
    """
    Create an application instance backed by the fake backend.

    Function-scoped because the app owns the store; sharing it across
    tests would leak tasks between them.
    """
    application = create_app("testing", backend=backend)
    yield application


@pytest.fixture
def client(app):
    """Create a test client for making HTTP requests."""
    with app.test_client() as test_client:
        yield test_client
