"""
Test configuration and fixtures.

This module sets up test environment and provides shared fixtures for all tests.
"""

import os
from datetime import date

import pytest

# Must be set BEFORE any imports of database.connection or shared.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PENDING_CONTEXT_BACKEND"] = "memory"
os.environ["OPENAI_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"


@pytest.fixture
async def db(tmp_path):
    """
    Fresh SQLite reservation store per test.

    Points database.connection at a file database under tmp_path, creates the
    tables and disposes the engine afterwards.
    """
    from database.connection import configure_engine, dispose_engine, init_db

    configure_engine(f"sqlite+aiosqlite:///{tmp_path}/reservations.db")
    await init_db()
    yield
    await dispose_engine()


@pytest.fixture
def today():
    """Fixed reference day for consistent testing: Monday, Dec 8, 2025."""
    return date(2025, 12, 8)


@pytest.fixture
def user():
    """Authenticated caller used across chat tests."""
    from agent.state.schemas import CallerIdentity

    return CallerIdentity(id="42", username="student", email="student@aui.ma")


@pytest.fixture
def context_store():
    """Empty in-memory pending context store."""
    from agent.state.pending_context import InMemoryPendingContextStore

    return InMemoryPendingContextStore()
