"""Test utilities for creating notebooks, contexts and capturing messages."""
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from esbook.models import Notebook, Cell, CellStatus, KernelState, NB_TYPE, NB_VERSION
from esbook.output import CellOutputContext, create_output_region


def create_test_notebook(
    notebook_id: str = "test-notebook",
    name: str = "Test Notebook",
    cells: list[Cell] = None
) -> Notebook:
    """Create a test notebook with default configuration.

    Args:
        notebook_id: Notebook ID
        name: Notebook name
        cells: List of cells (defaults to one blank cell)

    Returns:
        New notebook instance
    """
    if cells is None:
        cells = [create_test_cell()]

    return Notebook(
        id=notebook_id,
        name=name,
        cells=cells,
        kernel=KernelState()
    )


def create_test_cell(
    cell_id: str = "test-cell",
    input: str = "",
    status: CellStatus = CellStatus.IDLE,
    output: list = None
) -> Cell:
    """Create a test cell with an empty output region."""
    return Cell(
        id=cell_id,
        input=input,
        status=status,
        output=list(output or []),
        output_region=create_output_region()
    )


def create_test_contents(elements: list, notebook_id: str = "test-notebook", name: str = "Test Notebook") -> dict:
    """Persisted notebook contents wrapping the given elements."""
    return {
        "nb_type": NB_TYPE,
        "nb_version": NB_VERSION,
        "id": notebook_id,
        "name": name,
        "elements": elements,
    }


class MockBroadcaster:
    """Mock broadcaster that captures all messages for verification."""

    def __init__(self):
        self.messages: list[dict] = []

    async def broadcast(self, message: dict):
        """Capture broadcasted message."""
        self.messages.append(message)

    # usable directly as an output listener
    __call__ = broadcast

    def get_messages_by_type(self, msg_type: str) -> list[dict]:
        """Get all messages of a specific type."""
        return [m for m in self.messages if m.get('type') == msg_type]

    def get_messages_for_cell(self, cell_id: str) -> list[dict]:
        """Get all messages for a specific cell."""
        return [m for m in self.messages if m.get('cellId') == cell_id]

    def statuses(self, cell_id: str) -> list[str]:
        return [m['status'] for m in self.get_messages_for_cell(cell_id) if m.get('type') == 'cell_status']

    def clear(self):
        """Clear message history."""
        self.messages.clear()


def create_test_context(cell_id: str = "test-cell", listener=None) -> CellOutputContext:
    return CellOutputContext(cell_id, [], create_output_region(), listener)
