"""
Pytest configuration for task service tests.

Every test gets its own TaskStore and an application built around it, so
no state leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient

from task_service.config import get_settings
from task_service.main import create_app
from task_service.store import TaskStore


@pytest.fixture
def store():
    """Fresh, empty store."""
    return TaskStore()


@pytest.fixture
def client(store):
    """TestClient for an application wired to the test's store."""
    app = create_app(store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def clear_settings_cache():
    """Drop cached settings before and after a test that changes the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
