from typing import Optional
from .base import StorageBackend
from .file_storage import FileStorage


_storage_backend: Optional[StorageBackend] = None


def get_storage() -> StorageBackend:
    """Get the configured storage backend (singleton)"""
    global _storage_backend

    if _storage_backend is None:
        _storage_backend = FileStorage()

    return _storage_backend


# Convenience functions
async def save_notebook(notebook):
    return await get_storage().save_notebook(notebook)


async def load_notebook(notebook_id):
    return await get_storage().load_notebook(notebook_id)


async def list_notebooks():
    return await get_storage().list_notebooks()


async def delete_notebook(notebook_id):
    return await get_storage().delete_notebook(notebook_id)


__all__ = [
    "StorageBackend", "FileStorage",
    "get_storage", "save_notebook", "load_notebook",
    "list_notebooks", "delete_notebook"
]
