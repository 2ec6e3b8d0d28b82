"""Upload checks shared by submission and re-upload."""

from __future__ import annotations

import os
from typing import Iterable

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest

MAX_UPLOAD_SIZE_DEFAULT = 10 * 1024 * 1024  # 10 MB
ALLOWED_EXTENSIONS_DEFAULT = {"jpeg", "jpg", "png", "pdf"}


def allowed_extensions() -> set[str]:
    configured = current_app.config.get("ALLOWED_UPLOAD_TYPES")
    if not configured:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    if isinstance(configured, str):
        values: Iterable[str] = configured.split(",")
    else:
        values = configured

    normalized: set[str] = set()
    for raw in values:
        if not isinstance(raw, str):
            continue

        item = raw.strip().lower()
        if not item:
            continue

        if "/" in item and not item.startswith("."):
            item = item.rsplit("/", 1)[-1]

        item = item.lstrip(".")
        if item:
            normalized.add(item)

    if not normalized:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    if "jpeg" in normalized:
        normalized.add("jpg")
    if "jpg" in normalized:
        normalized.add("jpeg")
    return normalized


def validate_upload(file: FileStorage) -> tuple[str, int]:
    """Check type and size; return the lowercase extension and byte size."""

    if file.filename is None or file.filename.strip() == "":
        raise BadRequest("A document file is required.")

    if "." not in file.filename:
        raise BadRequest("File name must have an extension.")
    extension = file.filename.rsplit(".", 1)[-1].lower()
    if extension not in allowed_extensions():
        allowed = ", ".join(sorted(allowed_extensions()))
        raise BadRequest(f"File type not allowed. Allowed types: {allowed}.")

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE_DEFAULT))
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    if size > max_size:
        raise BadRequest(
            f"File exceeds the maximum upload size of {max_size // (1024 * 1024)}MB."
        )
    return extension, size


def document_path(application_id: int, requirement_id: int, extension: str) -> str:
    return f"applications/{application_id}/{requirement_id}.{extension}"
