"""Interface shared by applicant document storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, BinaryIO


class StorageError(Exception):
    """Raised when a backend cannot persist or remove a file."""


class AbstractStorage(ABC):
    """Backends address files by relative paths such as ``applications/7/3.pdf``."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], path: str) -> str:
        """Write ``file_obj`` at ``path``, replacing any previous file there."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove a stored file. Missing files are ignored."""
