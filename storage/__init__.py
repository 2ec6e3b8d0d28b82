"""Storage backends."""

from flask import current_app

from .abstract_storage import AbstractStorage, StorageError
from .local_storage import LocalStorage

__all__ = ["AbstractStorage", "LocalStorage", "StorageError", "get_storage"]


def get_storage() -> AbstractStorage:
    """Return the storage backend configured on the current application."""

    return current_app.extensions["document_storage"]
