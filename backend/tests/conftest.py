"""
Pytest configuration and shared test helpers for backend tests.
"""
import os

# Skip MongoDB connection on startup when running under pytest.
os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest
from unittest.mock import AsyncMock, MagicMock

# Shared TestClient fixture so tests can use in-process requests without a running server.
from fastapi.testclient import TestClient
from server import app


@pytest.fixture
def client():
    """Return a TestClient for the main FastAPI app (server:app). Use for unit-style API tests."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    yield
    app.dependency_overrides.clear()


def make_db():
    """MagicMock database with the collections used by the CLM settings store and submission log."""
    db = MagicMock()
    for name in ("clm_settings", "workflow_submissions"):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.replace_one = AsyncMock()
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
        cursor = MagicMock()
        cursor.sort = MagicMock(return_value=cursor)
        cursor.skip = MagicMock(return_value=cursor)
        cursor.limit = MagicMock(return_value=cursor)
        cursor.to_list = AsyncMock(return_value=[])
        collection.find = MagicMock(return_value=cursor)
        collection.count_documents = AsyncMock(return_value=0)
        setattr(db, name, collection)
    collections = {"clm_settings": db.clm_settings, "workflow_submissions": db.workflow_submissions}
    db.__getitem__.side_effect = lambda name: collections[name]
    return db
