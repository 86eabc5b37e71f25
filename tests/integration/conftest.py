"""
Fixtures for API tests.

The app's database dependency is pointed at the per-test in-memory
database; the lifespan (init_db, cleanup loop) is not started.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db
from app.api.main import app
from app.config import settings


@pytest.fixture
def client(db, monkeypatch):
    """Test client for the bursary bot."""
    monkeypatch.setattr(settings, "bot_variant", "tti_bursaries")
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
