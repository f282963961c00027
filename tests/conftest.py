"""
Pytest configuration.

Adds the project root to the Python path so that tests can import domain,
repositories, services and api, and provides an in-memory Supabase client.
"""

import sys
from pathlib import Path

import pytest

# Add the project directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories import client as db_client  # noqa: E402
from tests.fakes import FakeSupabase  # noqa: E402


@pytest.fixture
def db():
    """Fresh in-memory database installed as the shared Supabase client."""

    fake = FakeSupabase()
    db_client.set_client(fake)  # type: ignore[arg-type]
    yield fake
    db_client.set_client(None)
