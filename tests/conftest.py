"""Pytest configuration and shared fixtures."""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["USE_REDIS"] = "false"

import subprocess
import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient

from app.domain.item import FAKE_ITEMS
from app.infrastructure.redis import ItemStore, get_item_store


@pytest.fixture
def item_store():
    """In-memory item store seeded with the fake items."""
    store = ItemStore()
    store.seed(FAKE_ITEMS)
    return store


@pytest.fixture
def mock_redis():
    """Mock Redis client holding a single list in memory."""
    rows = []
    client = Mock()
    client.rpush.side_effect = lambda key, *values: rows.extend(values) or len(rows)
    client.eval.side_effect = lambda script, numkeys, key, *values: (
        0 if rows else rows.extend(values) or len(rows)
    )
    client.lrange.side_effect = lambda key, start, end: rows[start:end + 1]
    client.llen.side_effect = lambda key: len(rows)
    client.delete.side_effect = lambda key: rows.clear() or 1
    client.rows = rows
    return client


@pytest.fixture
def test_client(item_store):
    """FastAPI test client using a fresh item store."""
    from main import app
    app.dependency_overrides[get_item_store] = lambda: item_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def completed():
    """Factory for ``subprocess.CompletedProcess`` results."""
    def _make(returncode=0, stdout="", stderr=""):
        return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)
    return _make


@pytest.fixture
def runner(completed):
    """Mock ``subprocess.run`` that succeeds."""
    return Mock(return_value=completed())
