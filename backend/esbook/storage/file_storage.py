import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional
from esbook.models import Notebook
from esbook.core import settings
from .base import StorageBackend


class FileStorage(StorageBackend):
    """File-based storage backend: one ``{id}.json`` contents file per notebook"""

    def __init__(self, notebook_dir: str = None):
        self.notebooks_dir = Path(notebook_dir or settings.NOTEBOOK_STORAGE_DIR)
        self.notebooks_dir.mkdir(parents=True, exist_ok=True)

    def _get_file_path(self, notebook_id: str) -> Path:
        """Get file path for a notebook"""
        return self.notebooks_dir / f"{notebook_id}.json"

    async def save_notebook(self, notebook: Notebook) -> None:
        """Save a notebook's contents to a JSON file"""
        # Skip saving if auto-save is disabled (e.g., during tests)
        if os.environ.get("DISABLE_AUTO_SAVE", "false").lower() == "true":
            return

        from esbook.services.notebook_service import notebook_to_contents
        data = notebook_to_contents(notebook)

        file_path = self._get_file_path(notebook.id)

        # Write to temporary file first (atomic write)
        with tempfile.NamedTemporaryFile(
            mode='w',
            dir=file_path.parent,
            delete=False,
            suffix='.tmp',
            prefix=f'{notebook.id}_'
        ) as f:
            json.dump(data, f, indent=2)
            temp_path = f.name

        # Atomic rename (POSIX guarantees atomicity)
        os.replace(temp_path, file_path)

    async def load_notebook(self, notebook_id: str) -> Optional[Notebook]:
        """
        Load a notebook from its JSON file. Returns None if there is no file.

        Raises:
            InvalidNotebookError: if the file's contents fail validation
        """
        file_path = self._get_file_path(notebook_id)

        if not file_path.exists():
            return None

        with open(file_path, 'r') as f:
            data = json.load(f)

        # Never autoeval on a storage load; that is for explicit loads only
        from esbook.services.notebook_service import load_notebook_contents
        return await load_notebook_contents(data.get("id", notebook_id), data, autoeval=False)

    async def list_notebooks(self) -> List[str]:
        """List notebooks from files"""
        return [f.stem for f in self.notebooks_dir.glob("*.json")]

    async def delete_notebook(self, notebook_id: str) -> None:
        """Delete a notebook file from disk"""
        file_path = self._get_file_path(notebook_id)
        if file_path.exists():
            file_path.unlink()
