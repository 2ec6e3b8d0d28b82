"""Local filesystem storage implementation."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import IO, BinaryIO

from werkzeug.utils import secure_filename

from config import Config

from .abstract_storage import AbstractStorage, StorageError


class LocalStorage(AbstractStorage):
    """Persist files to the local filesystem under the configured upload directory."""

    def __init__(self, upload_dir: str | None = None):
        self.base_directory = Path(upload_dir or Config.UPLOAD_DIR)
        os.makedirs(self.base_directory, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        parts = [secure_filename(part) for part in PurePosixPath(path).parts]
        if not parts or not all(parts):
            raise StorageError("Path must contain only valid segments.")
        return self.base_directory.joinpath(*parts)

    def save(self, file_obj: IO[bytes], path: str) -> str:
        """Save a file and return the relative path within the upload directory."""

        destination = self._resolve(path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if hasattr(file_obj, "save"):
                file_obj.save(destination)  # type: ignore[arg-type]
            else:
                with open(destination, "wb") as output:
                    output.write(file_obj.read())
        except OSError as exc:
            raise StorageError(f"Could not store {path}: {exc}") from exc

        return destination.relative_to(self.base_directory).as_posix()

    def exists(self, path: str) -> bool:
        """Return True if the given relative path exists within the upload directory."""

        return self._resolve(path).exists()

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Open a stored file using the provided mode."""

        return open(self._resolve(path), mode)

    def delete(self, path: str) -> None:
        try:
            self._resolve(path).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not delete {path}: {exc}") from exc
