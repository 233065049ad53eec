"""
Pytest Configuration
====================
Shared fixtures for all tests.
"""

import os

import pytest

from fakes import FakeSource, FakeStore

TENANT = "user-123"


@pytest.fixture(scope="session", autouse=True)
def set_test_env():
    """Set up test environment variables before any tests run."""
    # Set required env vars for testing
    os.environ["SUPABASE_URL"] = os.environ.get("SUPABASE_URL", "https://test.supabase.co")
    os.environ["SUPABASE_SERVICE_KEY"] = os.environ.get("SUPABASE_SERVICE_KEY", "test-key")
    os.environ["ENVIRONMENT"] = os.environ.get("ENVIRONMENT", "dev")
    os.environ["SYNC_METADATA_SCOPE"] = "tenant"

    # Clear any cached settings
    from sheetsync.config import get_settings

    get_settings.cache_clear()

    yield

    # Clean up after tests
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Provide settings instance for tests."""
    from sheetsync.config import get_settings

    return get_settings()


@pytest.fixture
def small_batches(monkeypatch):
    """Tiny store limits so chunking and pagination kick in with a few rows."""
    from sheetsync.config import get_settings

    monkeypatch.setenv("BATCH_SIZE", "2")
    monkeypatch.setenv("PAGE_SIZE", "3")
    monkeypatch.setenv("DELETE_BATCH_SIZE", "2")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def prefect_env():
    """Run flows against a temporary local Prefect database."""
    from prefect.testing.utilities import prefect_test_harness

    with prefect_test_harness():
        yield


@pytest.fixture
def quiet_run_logger():
    """Allow calling task functions via .fn() outside a flow run."""
    from prefect.logging import disable_run_logger

    with disable_run_logger():
        yield


@pytest.fixture
def tenant():
    return TENANT


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def make_source():
    return FakeSource
