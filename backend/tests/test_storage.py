"""Tests for file-based notebook storage."""
import json
import pytest
from esbook.kernel import InvalidNotebookError
from esbook.models import NB_TYPE
from esbook.services import evaluate_cell
from esbook.storage import save_notebook, load_notebook, list_notebooks, delete_notebook
from tests.test_utils import create_test_notebook, create_test_cell


@pytest.fixture
def auto_save(monkeypatch):
    monkeypatch.setenv("DISABLE_AUTO_SAVE", "false")


@pytest.mark.asyncio
async def test_save_and_load_round_trip(auto_save, isolated_storage):
    notebook = create_test_notebook(
        notebook_id="stored",
        cells=[create_test_cell(cell_id="c1", input="# autoeval\n'value'")]
    )
    await evaluate_cell(notebook, "c1")
    await save_notebook(notebook)

    path = isolated_storage.notebooks_dir / "stored.json"
    data = json.loads(path.read_text())
    assert data["nb_type"] == NB_TYPE
    assert data["elements"][0]["output"] == [{"type": "text", "text": "value"}]
    assert list(isolated_storage.notebooks_dir.glob("*.tmp")) == []

    loaded = await load_notebook("stored")
    assert loaded.id == "stored"
    assert loaded.cells[0].output == [{"type": "text", "text": "value"}]
    # storage loads never re-run cells, even autoeval ones
    assert loaded.cells[0].eval_worker is None
    assert await list_notebooks() == ["stored"]


@pytest.mark.asyncio
async def test_save_is_skipped_when_auto_save_disabled(isolated_storage):
    await save_notebook(create_test_notebook(notebook_id="skipped"))
    assert await list_notebooks() == []


@pytest.mark.asyncio
async def test_load_missing_notebook():
    assert await load_notebook("missing") is None


@pytest.mark.asyncio
async def test_load_invalid_file(isolated_storage):
    (isolated_storage.notebooks_dir / "broken.json").write_text(json.dumps({"nb_type": "nope"}))
    with pytest.raises(InvalidNotebookError):
        await load_notebook("broken")


@pytest.mark.asyncio
async def test_delete_notebook(auto_save):
    await save_notebook(create_test_notebook(notebook_id="gone"))
    await delete_notebook("gone")
    await delete_notebook("gone")
    assert await list_notebooks() == []
