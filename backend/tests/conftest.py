"""Pytest configuration and shared fixtures for backend tests."""
import pytest
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Keep tests from writing notebooks unless a test opts in
os.environ.setdefault("DISABLE_AUTO_SAVE", "true")

import esbook.storage
from esbook.api import NOTEBOOKS
from esbook.models import KernelState
from esbook.storage import FileStorage
from tests.test_utils import create_test_notebook, create_test_cell


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path):
    """Point the storage singleton at a temporary directory and reset app state."""
    previous = esbook.storage._storage_backend
    esbook.storage._storage_backend = FileStorage(str(tmp_path / "notebooks"))
    NOTEBOOKS.clear()
    yield esbook.storage._storage_backend
    NOTEBOOKS.clear()
    esbook.storage._storage_backend = previous


@pytest.fixture
def test_notebook():
    """Create a basic test notebook with one cell."""
    return create_test_notebook(
        notebook_id="test-notebook",
        name="Test Notebook",
        cells=[create_test_cell(cell_id="cell1", input="1 + 1")]
    )


@pytest.fixture
def empty_notebook():
    """Create a test notebook with a single blank cell."""
    return create_test_notebook(
        notebook_id="empty-notebook",
        name="Empty Notebook",
        cells=[create_test_cell(cell_id="blank")]
    )


@pytest.fixture
def test_kernel():
    """Create a test kernel state."""
    return KernelState()
