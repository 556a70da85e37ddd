"""
Pytest configuration and shared fixtures for unit tests.
"""
import pytest

from src.sync.clients import RecordingExportClient
from src.traversal.traversal_engine import TraversalEngine

# Note: pytest_plugins is defined in the root tests/conftest.py
# to comply with pytest's requirement that it be at the top level


@pytest.fixture
def recording_client():
    """In-memory export client that keeps every exported item."""
    return RecordingExportClient()


@pytest.fixture
def fashion_engine(fashion_store):
    """TraversalEngine over the cyclic Fashion catalog."""
    return TraversalEngine(fashion_store)


@pytest.fixture
def multi_engine(multi_catalog_store):
    """TraversalEngine over the two-catalog store."""
    return TraversalEngine(multi_catalog_store)


@pytest.fixture
def temp_state_file(tmp_path):
    """
    Path for a temporary sync state file.

    The file is not created by default - tests can write to it as needed.
    """
    return tmp_path / "sync_state.json"
