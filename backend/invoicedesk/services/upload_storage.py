# Overview: Filesystem storage for uploaded invoice files.

"""
Uploaded files live flat in UPLOAD_FOLDER under "<uuid>_<secure name>".
The invoices table stores the relative path "/uploads/<stored name>".
Only the basename of a stored path is ever joined to the upload folder.
"""

from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..errors import StorageError, ValidationError
from .records import build_data_url, mime_for_filename


UPLOAD_URL_PREFIX = "/uploads/"
KEEP_FILES = {".gitkeep"}


def upload_dir() -> str:
    path = os.path.abspath(current_app.config["UPLOAD_FOLDER"])
    os.makedirs(path, exist_ok=True)
    return path


def allowed_file(filename: str | None) -> bool:
    if not filename or "." not in filename:
        return False
    ext = filename.rsplit(".", 1)[1].lower()
    return ext in current_app.config["ALLOWED_UPLOAD_EXTENSIONS"]


def resolve_path(relative_path: str | None) -> str | None:
    """Absolute path for a stored relative path, or None when empty."""
    if not relative_path:
        return None
    name = os.path.basename(relative_path)
    if not name:
        return None
    return os.path.join(upload_dir(), name)


def save_upload(file: FileStorage) -> tuple[str, str]:
    """
    Persist an uploaded file.

    Returns (original_name, relative_path).
    Raises ValidationError for unsupported types, StorageError on disk failure.
    """
    original_name = file.filename or ""
    if not allowed_file(original_name):
        raise ValidationError(f"Unsupported file type: {original_name or '(unnamed)'}")

    ext = original_name.rsplit(".", 1)[1].lower()
    safe_name = secure_filename(original_name) or f"upload.{ext}"
    if "." not in safe_name:
        safe_name = f"{safe_name}.{ext}"
    stored_name = f"{uuid.uuid4().hex}_{safe_name}"

    try:
        file.save(os.path.join(upload_dir(), stored_name))
    except OSError as e:
        raise StorageError(f"Failed to store file {original_name}") from e

    return original_name, f"{UPLOAD_URL_PREFIX}{stored_name}"


def delete_file(relative_path: str | None) -> bool:
    """Remove a stored file. Returns True if a file was removed."""
    path = resolve_path(relative_path)
    if not path or not os.path.isfile(path):
        return False
    try:
        os.remove(path)
    except OSError:
        current_app.logger.exception("Failed to delete upload %s", path)
        return False
    return True


def delete_files(relative_paths) -> int:
    return sum(1 for p in relative_paths if delete_file(p))


def clear_uploads() -> int:
    """Remove every stored upload (full purge). Returns count removed."""
    folder = upload_dir()
    removed = 0
    for name in os.listdir(folder):
        if name in KEEP_FILES:
            continue
        path = os.path.join(folder, name)
        if not os.path.isfile(path):
            continue
        try:
            os.remove(path)
            removed += 1
        except OSError:
            current_app.logger.exception("Failed to delete upload %s", path)
    return removed


def read_data_url(relative_path: str | None, file_name: str | None) -> str:
    """
    Load a stored file as a data URL.

    Returns "" when the path is empty or the file is missing; exports and
    listings treat that as "no image".
    """
    path = resolve_path(relative_path)
    if not path:
        return ""
    if not os.path.isfile(path):
        current_app.logger.warning("Upload missing on disk: %s", path)
        return ""
    with open(path, "rb") as fh:
        content = fh.read()
    return build_data_url(content, mime_for_filename(file_name or path))
